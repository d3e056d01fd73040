"""
Pydantic models for Cidian lookup results.

These models give the JSON output of the command line a stable shape and
can be used directly as response models by a web API.

Usage:
    from cidian.output import lookup

    result = lookup(lexicon, "中文")
    print(result.model_dump_json(indent=2))
"""

from typing import List

from pydantic import BaseModel, Field


class EntryResult(BaseModel):
    """A single dictionary entry."""
    simplified: str = Field(..., description="Simplified headword")
    traditional: str = Field(..., description="Traditional headword")
    pinyin: List[str] = Field(default_factory=list, description="Numbered pinyin syllables")
    pinyin_marks: List[str] = Field(default_factory=list, description="Pinyin with tone marks")
    english: List[str] = Field(default_factory=list, description="English glosses")
    header: str = Field("", description="One-line summary: headword, reading, glosses")

    @classmethod
    def from_entry(cls, entry) -> "EntryResult":
        """Create EntryResult from a cidian.dictionary.Entry."""
        from cidian.output import entry_line
        from cidian.romanize import pinyin_with_marks

        return cls(
            simplified=entry.simplified_text,
            traditional=entry.traditional_text,
            pinyin=list(entry.pinyin),
            pinyin_marks=pinyin_with_marks(entry.pinyin),
            english=list(entry.english),
            header=entry_line(entry),
        )


class GroupResult(BaseModel):
    """Entries reached through the same dictionary key."""
    header: str = Field(..., description="Summary of what the entries share")
    entries: List[EntryResult] = Field(default_factory=list)


class SectionResult(BaseModel):
    """Results of one lookup kind (pinyin, characters or English)."""
    name: str = Field(..., description="'Pinyin', 'Simplified' or 'English'")
    skipped: int = Field(0, description="Leading query elements that matched nothing")
    groups: List[GroupResult] = Field(default_factory=list)

    @property
    def count(self) -> int:
        return len(self.groups)


class LookupResult(BaseModel):
    """All lookup sections for a query."""
    query: str
    sections: List[SectionResult] = Field(default_factory=list)

    def non_empty(self) -> List[SectionResult]:
        """Sections with at least one group."""
        return [s for s in self.sections if s.groups]
