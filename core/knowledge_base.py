"""
core/knowledge_base.py - Offline Disease Knowledge Base
========================================================

This module handles the offline tier of the answer pipeline:
- Loading disease records from a JSON file at startup
- Finding the best-matching record for a query
- Rendering a record into the multi-section reply shown to the user

Matching priority (first hit wins, all keys lower-cased):
1. Exact key match              "malaria"             -> malaria
2. Substring, either direction  "what is dengue"      -> dengue
                                "itch"                -> jock itch
3. Single-token exact match     kept for parity with the earlier service;
                                any key equal to a query token is already
                                a substring of the query, so tier 2 wins

When several keys match in tier 2, the LONGEST key wins, and ties keep the
order the records were loaded in. "stomach flu diarrhea" therefore resolves
to "stomach flu", not "diarrhea".
"""

import json
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, Optional, Union

import sys
sys.path.insert(0, str(Path(__file__).parent.parent))
from config import DISCLAIMER

logger = logging.getLogger(__name__)


# =============================================================================
# DATA STRUCTURES
# =============================================================================

@dataclass(frozen=True)
class KnowledgeEntry:
    """
    One disease record.

    Attributes:
        name: Disease name as stored (also the lookup key once lower-cased)
        description: One or two sentences describing the disease
        symptoms: Common symptoms, in display order
        prevention: Prevention advice, in display order
    """
    name: str
    description: str
    symptoms: tuple[str, ...] = ()
    prevention: tuple[str, ...] = ()

    @property
    def key(self) -> str:
        return self.name.strip().lower()

    @classmethod
    def from_dict(cls, record: dict) -> "KnowledgeEntry":
        """Build an entry from a JSON record, validating the required fields."""
        name = record.get("name")
        if not isinstance(name, str) or not name.strip():
            raise ValueError(f"Knowledge base record is missing a name: {record!r}")

        symptoms = record.get("symptoms") or []
        prevention = record.get("prevention") or []
        if not isinstance(symptoms, list) or not isinstance(prevention, list):
            raise ValueError(f"'symptoms' and 'prevention' must be lists for {name!r}")

        return cls(
            name=name.strip(),
            description=str(record.get("description", "")),
            symptoms=tuple(str(s) for s in symptoms),
            prevention=tuple(str(p) for p in prevention),
        )


class KnowledgeBase:
    """
    Read-only mapping from normalized disease name to KnowledgeEntry.

    Built once at startup and shared by every request; nothing mutates it
    afterwards, so lookups need no locking.
    """

    def __init__(self, entries: Iterable[KnowledgeEntry]):
        self._entries: dict[str, KnowledgeEntry] = {}
        for entry in entries:
            if not entry.key:
                raise ValueError(f"Knowledge base entry has a blank name: {entry!r}")
            if entry.key in self._entries:
                logger.warning("Duplicate knowledge base entry %r; keeping the last one", entry.key)
            self._entries[entry.key] = entry

        # Longest key first; sorted() is stable so equal lengths keep load order
        self._keys_by_length = sorted(self._entries, key=len, reverse=True)

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, key: str) -> bool:
        return key in self._entries

    def get(self, key: str) -> Optional[KnowledgeEntry]:
        return self._entries.get(key)

    def keys(self) -> list[str]:
        """Keys in load order."""
        return list(self._entries)

    def resolve(self, query: str) -> Optional[KnowledgeEntry]:
        """
        Find the best-matching entry for a normalized query.

        Args:
            query: Trimmed, lower-cased user message

        Returns:
            The matching KnowledgeEntry, or None if no tier matches
        """
        q = query.strip().lower()
        if not q:
            return None

        # Tier 1: exact
        if q in self._entries:
            return self._entries[q]

        # Tier 2: substring containment, either direction
        for key in self._keys_by_length:
            if key in q or q in key:
                return self._entries[key]

        # Tier 3: whole-token match
        for token in q.split():
            if token in self._entries:
                return self._entries[token]

        return None


# =============================================================================
# LOADING
# =============================================================================

def load_knowledge_base(path: Union[str, Path]) -> KnowledgeBase:
    """
    Load disease records from a JSON file.

    The file holds a list of objects with "name", "description",
    "symptoms" and "prevention" fields.

    Raises:
        FileNotFoundError: If the file doesn't exist
        ValueError: If the file isn't a list of valid records
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Knowledge base file not found at {path}.")

    with open(path, "r", encoding="utf-8") as f:
        try:
            records = json.load(f)
        except json.JSONDecodeError as e:
            raise ValueError(f"Knowledge base file {path} is not valid JSON: {e}") from e

    if not isinstance(records, list):
        raise ValueError(f"Knowledge base file {path} must contain a JSON list of records.")

    kb = KnowledgeBase(KnowledgeEntry.from_dict(r) for r in records)
    logger.info("Loaded %d knowledge base entries from %s", len(kb), path)
    return kb


# =============================================================================
# RENDERING
# =============================================================================

def capitalize_words(text: str) -> str:
    """
    Upper-case the first character of each whitespace-separated word.

    The rest of each word is left alone, so "covid-19" becomes "Covid-19"
    and "pH level" becomes "PH Level".
    """
    return " ".join(word[0].upper() + word[1:] for word in text.split())


def render_entry(entry: KnowledgeEntry) -> str:
    """
    Render an entry as the reply text.

    Sections are separated by blank lines; the symptom and prevention
    sections are left out when their lists are empty.
    """
    sections = [capitalize_words(entry.name), entry.description]

    if entry.symptoms:
        sections.append("Symptoms: " + ", ".join(entry.symptoms) + ".")
    if entry.prevention:
        sections.append("Prevention: " + ", ".join(entry.prevention) + ".")

    sections.append(DISCLAIMER)
    return "\n\n".join(sections)
