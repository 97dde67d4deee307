from __future__ import annotations

from typing import Optional


# Lookup keys are trimmed, lower-cased input. Only the US and UK collapse to
# abbreviations; every other country maps to its full English name.
COUNTRY_STANDARDIZATION: dict[str, str] = {
    # United States
    "united states": "US",
    "united states of america": "US",
    "usa": "US",
    "us": "US",
    "u.s.": "US",
    "u.s.a.": "US",
    "america": "US",
    # United Kingdom
    "united kingdom": "UK",
    "great britain": "UK",
    "britain": "UK",
    "uk": "UK",
    "u.k.": "UK",
    "gb": "UK",
    "england": "UK",
    "scotland": "UK",
    "wales": "UK",
    "northern ireland": "UK",
    # Full names
    "china": "China",
    "cn": "China",
    "prc": "China",
    "people's republic of china": "China",
    "japan": "Japan",
    "jp": "Japan",
    "日本": "Japan",
    "taiwan": "Taiwan",
    "tw": "Taiwan",
    "republic of china": "Taiwan",
    "india": "India",
    "in": "India",
    "germany": "Germany",
    "de": "Germany",
    "deutschland": "Germany",
    "france": "France",
    "fr": "France",
    "canada": "Canada",
    "ca": "Canada",
    "australia": "Australia",
    "au": "Australia",
    "brazil": "Brazil",
    "br": "Brazil",
    "brasil": "Brazil",
    "russia": "Russia",
    "ru": "Russia",
    "russian federation": "Russia",
    "россия": "Russia",
    "south korea": "South Korea",
    "korea": "South Korea",
    "kr": "South Korea",
    "republic of korea": "South Korea",
    "singapore": "Singapore",
    "sg": "Singapore",
    "netherlands": "Netherlands",
    "the netherlands": "Netherlands",
    "nl": "Netherlands",
    "holland": "Netherlands",
    "spain": "Spain",
    "es": "Spain",
    "españa": "Spain",
    "italy": "Italy",
    "it": "Italy",
    "italia": "Italy",
    "poland": "Poland",
    "pl": "Poland",
    "polska": "Poland",
    "sweden": "Sweden",
    "se": "Sweden",
    "sverige": "Sweden",
    "switzerland": "Switzerland",
    "ch": "Switzerland",
    "schweiz": "Switzerland",
    "suisse": "Switzerland",
    "israel": "Israel",
    "il": "Israel",
    "mexico": "Mexico",
    "mx": "Mexico",
    "méxico": "Mexico",
    "argentina": "Argentina",
    "ar": "Argentina",
    "turkey": "Turkey",
    "türkiye": "Turkey",
    "tr": "Turkey",
    "ukraine": "Ukraine",
    "ua": "Ukraine",
    "україна": "Ukraine",
    "indonesia": "Indonesia",
    "id": "Indonesia",
    "vietnam": "Vietnam",
    "viet nam": "Vietnam",
    "vn": "Vietnam",
    "thailand": "Thailand",
    "th": "Thailand",
    "philippines": "Philippines",
    "ph": "Philippines",
    "malaysia": "Malaysia",
    "my": "Malaysia",
    "pakistan": "Pakistan",
    "pk": "Pakistan",
    "bangladesh": "Bangladesh",
    "bd": "Bangladesh",
    "egypt": "Egypt",
    "eg": "Egypt",
    "nigeria": "Nigeria",
    "ng": "Nigeria",
    "south africa": "South Africa",
    "za": "South Africa",
    "new zealand": "New Zealand",
    "nz": "New Zealand",
    "ireland": "Ireland",
    "ie": "Ireland",
    "belgium": "Belgium",
    "be": "Belgium",
    "austria": "Austria",
    "at": "Austria",
    "österreich": "Austria",
    "denmark": "Denmark",
    "dk": "Denmark",
    "danmark": "Denmark",
    "norway": "Norway",
    "no": "Norway",
    "norge": "Norway",
    "finland": "Finland",
    "fi": "Finland",
    "suomi": "Finland",
    "portugal": "Portugal",
    "pt": "Portugal",
    "greece": "Greece",
    "gr": "Greece",
    "czech republic": "Czech Republic",
    "czechia": "Czech Republic",
    "cz": "Czech Republic",
    "romania": "Romania",
    "ro": "Romania",
    "hungary": "Hungary",
    "hu": "Hungary",
}


def standardize_country(country: Optional[str]) -> Optional[str]:
    """Map free-text country input to its canonical label.

    Unknown values are title-cased word by word, so the function never fails.
      - "united states", "USA", "U.S." -> "US"
      - "  japan " -> "Japan"
      - "freedonia" -> "Freedonia"
    """
    if not country:
        return None
    text = str(country).strip()
    if not text:
        return None

    standardized = COUNTRY_STANDARDIZATION.get(text.lower())
    if standardized:
        return standardized

    return " ".join(word[:1].upper() + word[1:].lower() for word in text.split())
