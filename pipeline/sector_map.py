"""Directory sectors and subcategory → sector classification.

14 fixed top-level sectors shared by every town. A row's explicit sector id
wins when it is one of them; otherwise the free-text subcategory is matched
against an ordered keyword table.
"""

from __future__ import annotations

# sector id → (display name, icon)
SECTORS: dict[str, tuple[str, str]] = {
    "home-services": ("Home Services", "\U0001f3e0"),
    "automotive": ("Automotive", "\U0001f697"),
    "health-wellness": ("Health & Wellness", "\U0001f33f"),
    "food-drinks": ("Food & Drinks", "\U0001f374"),
    "shopping-retail": ("Shopping & Retail", "\U0001f6cd️"),
    "professional-services": ("Professional Services", "⚖️"),
    "construction-industrial": ("Construction & Industrial", "\U0001f3d7️"),
    "education-community": ("Education & Community", "\U0001f393"),
    "tourism-hospitality": ("Tourism & Hospitality", "\U0001f3e8"),
    "pets-animals": ("Pets & Animals", "\U0001f43e"),
    "wildlife-agriculture": ("Wildlife & Agriculture", "\U0001f69c"),
    "daily-activities": ("Daily activities", "\U0001f6b5"),
    "emergency-services": ("Emergency Services", "\U0001f6a8"),
    "informal-services": ("Informal Services", "\U0001f9f9"),
}

DEFAULT_SECTOR = "informal-services"

# keyword fallback for rows without a usable sector id.
# Order matters: first keyword found in the subcategory wins, so specific
# phrases sit above the generic words they contain ("self-catering" above
# "catering", "hardware" above "store", "taxi" above "tax", "animal hospital"
# above "hospital").
_KEYWORD_MAP: list[tuple[list[str], str]] = [
    (["ambulance", "fire station", "fire brigade", "police", "emergency", "paramedic",
      "armed response", "security company"], "emergency-services"),
    (["lodge", "guest house", "guesthouse", "b&b", "bed and breakfast", "self-catering",
      "hotel", "safari", "game reserve", "campsite", "camping", "resort", "accommodation",
      "tour"], "tourism-hospitality"),
    (["coffee shop", "coffee", "cafe", "restaurant", "bakery", "butcher", "takeaway",
      "take-away", "pizza", "catering", "bistro", "tavern", "liquor", "wine", "delicatessen"],
     "food-drinks"),
    (["mechanic", "auto", "car wash", "panel beat", "tyre", "tire", "towing", "vehicle",
      "motor", "taxi", "petrol", "fuel", "spares", "garage"], "automotive"),
    (["plumb", "electrician", "electrical", "handyman", "painter", "painting",
      "pest control", "cleaning", "garden", "landscap", "pool", "roof", "geyser",
      "solar", "borehole", "locksmith", "appliance repair", "dstv", "installer"],
     "home-services"),
    (["veterinar", "vet clinic", "animal hospital"], "pets-animals"),
    (["pharmacy", "chemist", "doctor", "dentist", "dental", "clinic", "physio",
      "optometrist", "hospital", "medical", "wellness", "massage", "day spa", "salon",
      "barber", "beauty", "hairdress", "nail", "gym", "fitness", "yoga", "health"],
     "health-wellness"),
    (["vet", "pet shop", "pet food", "pet care", "pets", "kennel", "cattery",
      "dog", "animal"], "pets-animals"),
    (["nursery school", "school", "creche", "crèche", "daycare", "day care", "tutor",
      "college", "training", "church", "community", "library"], "education-community"),
    (["game farm", "farm", "agri", "livestock", "cattle", "hunting", "wildlife", "feed",
      "seed", "tractor", "nursery"], "wildlife-agriculture"),
    (["attorney", "lawyer", "legal", "accountant", "accounting", "bookkeep", "tax",
      "insurance", "estate agent", "real estate", "property", "consult", "financial",
      "bank", "architect", "engineer", "it support", "computer", "web design",
      "marketing", "printing"], "professional-services"),
    (["hardware", "construction", "builder", "building", "contractor", "brick", "cement",
      "steel", "welding", "plant hire", "mining", "transport", "logistics"],
     "construction-industrial"),
    (["general dealer", "supermarket", "store", "boutique", "clothing", "fashion",
      "furniture", "electronics", "gift", "jewel", "florist", "cellphone", "book"],
     "shopping-retail"),
    (["adventure", "hiking", "hike", "cycling", "bike", "mtb", "horse riding", "golf",
      "fishing", "activities", "activity", "sport"], "daily-activities"),
    (["domestic", "car guard", "street vendor", "spaza", "hawker", "seamstress", "tailor",
      "shoe repair", "odd jobs"], "informal-services"),
]


def is_sector(sector_id: str | None) -> bool:
    return bool(sector_id) and sector_id in SECTORS


def sector_name(sector_id: str) -> str:
    return SECTORS.get(sector_id, SECTORS[DEFAULT_SECTOR])[0]


def classify_sector(explicit: str | None, subcategory: str = "") -> str:
    """Resolve a row to exactly one sector id.

    Explicit sector id first (if it is a known sector), then the first keyword
    contained in the subcategory, then DEFAULT_SECTOR. Never returns None.
    """
    if explicit:
        candidate = explicit.strip().lower()
        if candidate in SECTORS:
            return candidate

    if subcategory:
        sub_lower = subcategory.lower()
        for keywords, sector in _KEYWORD_MAP:
            for kw in keywords:
                if kw in sub_lower:
                    return sector

    return DEFAULT_SECTOR
