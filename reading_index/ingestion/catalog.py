from __future__ import annotations

import json
from collections import Counter
from pathlib import Path
from typing import Iterable, List, Optional, Sequence, Tuple

from .models import ReadingEntry

# Mirrors the course schedule. Paths are relative to the readings directory.
READINGS: Tuple[ReadingEntry, ...] = (
    ReadingEntry("w01_parmenides", 1, 'Parmenides, "On Nature"', "Week 1_Parmenides/Week 1_Parmenides.pdf"),
    ReadingEntry("w01_kingsley", 1, "Kingsley, In the Dark Places of Wisdom", "Week 1_Parmenides/Week 1_Kingsley.pdf"),
    ReadingEntry("w02_meta", 2, "Aristotle, Metaphysics Book Θ", "Week 2_Aristotle/Week 2_Aristotle.pdf"),
    ReadingEntry("w02_di", 2, "Aristotle, De Interpretatione ch. 9", "Week 2_Aristotle/Week 2_Conway.pdf"),
    ReadingEntry("w02_witt", 2, 'Witt, "The Priority of Actuality in Aristotle"', "Week 2_Aristotle/Week 2_Witt.pdf"),
    ReadingEntry("w03_avicenna", 3, "Avicenna, The Metaphysics of The Healing", "Week 3_Avicenna/Week 3_Avicenna.pdf"),
    ReadingEntry("w03_adamson", 3, 'Adamson, "From the Necessary Existent to God"', "Week 3_Avicenna/Week 3_Adamson.pdf"),
    ReadingEntry("w04_nagarjuna", 4, "Nāgārjuna, Mūlamadhyamakakārikā", "Week 4_Nagarjuna/Week 4_Nagarjuna.pdf"),
    ReadingEntry(
        "w04_garfield",
        4,
        'Garfield, "Dependent Arising and the Emptiness of Emptiness"',
        "Week 4_Nagarjuna/Week 4_Garfield (Essay).pdf",
    ),
    ReadingEntry("w04_commentary", 4, "Garfield, Commentary", "Week 4_Nagarjuna/Week 4_Garfield (Commentary).pdf"),
    ReadingEntry("w05_monad", 5, "Leibniz, Monadology", "Week 5_Leibniz and Du Châtelet/Leibniz_Monadology.pdf"),
    ReadingEntry(
        "w05_duchat",
        5,
        "Du Châtelet, Institutions de physique",
        "Week 5_Leibniz and Du Châtelet/Week 5_Du Chatelet.pdf",
    ),
    ReadingEntry(
        "w05_orig",
        5,
        'Leibniz, "On the Ultimate Origination of Things"',
        "Week 5_Leibniz and Du Châtelet/Week 5_Leibniz (Origination).pdf",
    ),
    ReadingEntry(
        "w06_kant",
        6,
        'Kant, Critique of Pure Reason: "Postulates of Empirical Thought"',
        "Week 6_Kant and Leech/Week 6_Kant.pdf",
    ),
    ReadingEntry(
        "w06_leech",
        6,
        'Leech, "The Function of Modal Judgment and the Kantian Gap"',
        "Week 6_Kant and Leech/Week 6_Leech.pdf",
    ),
    ReadingEntry("w07_arabi", 7, "Ibn ʿArabī, Fuṣūṣ al-Ḥikam", "Week 7_al-Adawiyya and Ibn Arabi/Week 7_Arabi.pdf"),
    ReadingEntry(
        "w08_husserl",
        8,
        'Husserl, "The Origin of Geometry"',
        "Week 8_Husserl and Derrida/Week 8_Husserl and Derrida.pdf",
    ),
    ReadingEntry(
        "w09_heid",
        9,
        "Heidegger, Being and Time Division II ch. 1",
        "Week 9_Heidegger and Arendt/Week 9_Heidegger.pdf",
    ),
    ReadingEntry("w09_arendt", 9, "Arendt, The Human Condition ch. 5", "Week 9_Heidegger and Arendt/Week 9_Arendt.pdf"),
    ReadingEntry("w10_peirce", 10, 'Peirce, "A Guess at the Riddle"', "Week 10_Peirce/Week 10_Peirce.pdf"),
    ReadingEntry(
        "w10_continuity",
        10,
        "\"The Continuity of Life: On Peirce's Objective Idealism\"",
        "Week 10_Peirce/Week 10_Ibri (On Peirce's Objective Idealism).pdf",
    ),
    ReadingEntry(
        "w11_nishida",
        11,
        "Nishida Kitarō, An Inquiry into the Good",
        "Week 11_Nishida and Lalla/Week 11_Nishida.pdf",
    ),
    ReadingEntry("w11_lalla", 11, "Lalla, Naked Song", "Week 11_Nishida and Lalla/Week 11_Lalla.pdf"),
    ReadingEntry("w12_white", 12, "Whitehead, Science and the Modern World ch. 11", "Week 12_Whitehead/Week 12_Whitehead.pdf"),
    ReadingEntry(
        "w12_stengers",
        12,
        "Stengers, Thinking with Whitehead",
        "Week 12_Whitehead/Week 12_Stengers (Thinking With Whitehead).pdf",
    ),
    # The week 13 folder name carries a trailing space on disk.
    ReadingEntry(
        "w13_thompson",
        13,
        "Thompson, Waking, Dreaming, Being ch. 1",
        "Week 13_Thompson, Weil, Varela /Week 13_Thompson.pdf",
    ),
    ReadingEntry(
        "w13_weil",
        13,
        'Weil, "Reflections on the Right Use of School Studies"',
        "Week 13_Thompson, Weil, Varela /Week 13_Weil.pdf",
    ),
    ReadingEntry("w13_varela", 13, 'Varela, "Neurophenomenology"', "Week 13_Thompson, Weil, Varela /Week 13_Varela.pdf"),
    ReadingEntry("w14_plotinus", 14, "Plotinus, Enneads V.1", "Week 14_Plotinus, Conway/Week 14_Plotinus.pdf"),
    ReadingEntry(
        "w14_conway",
        14,
        "Conway, Principles of the Most Ancient and Modern Philosophy",
        "Week 14_Plotinus, Conway/Week 14_Conway.pdf",
    ),
    ReadingEntry(
        "w15_marcus",
        15,
        'Barcan Marcus, "Modalities and Intensional Languages"',
        "Week 15_Hamkins, Barcon Marcus/Week 15_Marcus.pdf",
    ),
    ReadingEntry(
        "w15_hamkins",
        15,
        'Hamkins, "The Set-Theoretic Multiverse"',
        "Week 15_Hamkins, Barcon Marcus/Week 15_Hamkins (multiverse).pdf",
    ),
    ReadingEntry(
        "w15_linnebo",
        15,
        'Hamkins & Linnebo, "The Modal Logic of Set-Theoretic Potentialism"',
        "Week 15_Hamkins, Barcon Marcus/Week 15_Hamkins and Linnebo.pdf",
    ),
    ReadingEntry(
        "w16_metal",
        16,
        'Koch, Silvestro & Foster, "The Evolutionary Dynamics of Cultural Change"',
        "Week 16_Foster/Week 16_Foster and Koch.pdf",
    ),
    ReadingEntry("w16_borges", 16, 'Borges, "The Garden of Forking Paths"', "Week 16_Foster/Week 16_Borges.pdf"),
)

_REQUIRED_KEYS = ("id", "week", "title", "file")


def load_catalog(path: Path) -> Tuple[ReadingEntry, ...]:
    """
    Load a catalog table from a JSON array of {id, week, title, file} objects.
    """
    with Path(path).open("r", encoding="utf-8") as f:
        raw = json.load(f)
    if not isinstance(raw, list):
        raise ValueError(f"Catalog {path} must be a JSON array, got {type(raw).__name__}")

    entries: List[ReadingEntry] = []
    for idx, item in enumerate(raw):
        if not isinstance(item, dict):
            raise ValueError(f"Catalog {path} item {idx} is not an object")
        missing = [key for key in _REQUIRED_KEYS if key not in item]
        if missing:
            raise ValueError(f"Catalog {path} item {idx} is missing {', '.join(missing)}")
        try:
            week = int(item["week"])
        except (TypeError, ValueError) as exc:
            raise ValueError(f"Catalog {path} item {idx} has a non-integer week: {item['week']!r}") from exc
        entries.append(ReadingEntry(id=str(item["id"]), week=week, title=str(item["title"]), file=str(item["file"])))
    return tuple(entries)


def select_entries(
    entries: Iterable[ReadingEntry],
    weeks: Optional[Sequence[int]] = None,
    ids: Optional[Sequence[str]] = None,
) -> List[ReadingEntry]:
    week_set = set(weeks) if weeks else None
    id_set = set(ids) if ids else None
    selected = []
    for entry in entries:
        if week_set is not None and entry.week not in week_set:
            continue
        if id_set is not None and entry.id not in id_set:
            continue
        selected.append(entry)
    return selected


def find_duplicate_ids(entries: Iterable[ReadingEntry]) -> List[str]:
    counts = Counter(entry.id for entry in entries)
    return sorted(entry_id for entry_id, count in counts.items() if count > 1)
