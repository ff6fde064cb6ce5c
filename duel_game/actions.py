"""Kafanski Duel action catalog and flavor-text pools."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Optional, Tuple

CATEGORY_DRINK = "pice"
CATEGORY_FOOD = "hrana"
CATEGORY_SPECIAL = "specijal"


@dataclass(slots=True, frozen=True)
class DuelAction:
    key: str
    label: str
    emoji: str
    cost: int
    category: str
    alco: int = 0
    respect: int = 0
    stomak: int = 0
    # Singing: respect depends on how drunk you are.
    gamble: bool = False
    # Vomiting: alcometer jumps to this value instead of adding ``alco``.
    sets_alco: Optional[int] = None

    def to_dict(self) -> Dict[str, object]:
        return {
            "label": self.label,
            "emoji": self.emoji,
            "cost": self.cost,
            "alco": self.alco,
            "respect": self.respect,
            "stomak": self.stomak,
            "category": self.category,
            "gamble": self.gamble,
            "setsAlco": self.sets_alco,
        }


_CATALOG = (
    DuelAction("pivo", "Pivo", "🍺", 50, CATEGORY_DRINK, alco=10, respect=5),
    DuelAction("rakija", "Rakija", "🥃", 80, CATEGORY_DRINK, alco=25, respect=15, stomak=-10),
    DuelAction("vinjak", "Vinjak", "🍷", 100, CATEGORY_DRINK, alco=20, respect=10, stomak=5),
    DuelAction("mineralna", "Mineralna", "💧", 30, CATEGORY_DRINK, alco=-15, respect=-20),
    DuelAction("cevapi", "Cevapi", "🥩", 200, CATEGORY_FOOD, alco=-10, stomak=30),
    DuelAction("kajmak_luk", "Kajmak i luk", "🧅", 100, CATEGORY_FOOD, alco=-5, stomak=20),
    DuelAction("kikiriki", "Kikiriki", "🥜", 50, CATEGORY_FOOD, stomak=10),
    DuelAction("ajvar_ljuti", "Ljuti ajvar", "🌶️", 0, CATEGORY_FOOD, respect=10, stomak=5),
    DuelAction("pevaj", "Pevaj pesmu", "🎤", 0, CATEGORY_SPECIAL, gamble=True),
    DuelAction("kafetin", "Kafetin", "💊", 150, CATEGORY_SPECIAL, alco=-30),
    DuelAction("povracaj", "Povracaj", "🤮", 0, CATEGORY_SPECIAL, alco=-80, respect=-50, sets_alco=20),
)

ACTIONS: Dict[str, DuelAction] = {action.key: action for action in _CATALOG}

FLAVOR_TEXTS: Dict[str, Tuple[str, ...]] = {
    "pivo": (
        "Konobar: 'Samo jos jedno!'",
        "Hladno pivo nikad ne skodi...",
        "Sta ces, mora se!",
        "E, daj jos jedno!",
    ),
    "rakija": (
        "Rakija lije, ekipa navija!",
        "Jedan za zivce!",
        "Konobar: 'E to be brate!'",
        "Domaca sljivovica, nema greske!",
    ),
    "vinjak": (
        "Vinjak za pravo drustvo!",
        "Konobar: 'Za gospodina vinjak!'",
        "Klasa se prepoznaje...",
    ),
    "mineralna": (
        "Ekipa: 'Sta si picka...'",
        "Konobar pogledom sudi.",
        "Mineralna u kafani? Stvarno?",
        "Sramota za celu kafanu.",
    ),
    "cevapi": (
        "Deset u lepinji sa svim!",
        "Spas za stomak!",
        "Cevapi resavaju sve probleme.",
    ),
    "kajmak_luk": (
        "Kajmak i luk, klasika!",
        "Jedes kao da nema sutra.",
        "Kajmak se topi, mmm...",
    ),
    "kikiriki": (
        "Grize kikiriki, gleda u daljinu...",
        "Bar nesto u stomak.",
        "Kikiriki gang!",
    ),
    "ajvar_ljuti": (
        "LJUTI! Celo lice crveno!",
        "Ekipa navija: 'Ajde, ajde!'",
        "Ajvar przi, ali daje respect!",
    ),
    "pevaj": (
        "Uzima mikrofon... publika drzi dah!",
        "Staje na sto i krece da peva!",
        "Konobar: 'Samo nemoj onu...'",
    ),
    "kafetin": (
        "Brza pomoc za glavu!",
        "Konobar: 'Opet kafetin?'",
        "Farmaceutska pomoc stigla!",
    ),
    "povracaj": (
        "Istrci napolje... zvuci se cuju do ulice.",
        "Konobar: 'Ne na pod!!!'",
        "Reset sistema, ali po cenu reputacije.",
    ),
}


__all__ = [
    "ACTIONS",
    "CATEGORY_DRINK",
    "CATEGORY_FOOD",
    "CATEGORY_SPECIAL",
    "DuelAction",
    "FLAVOR_TEXTS",
]
