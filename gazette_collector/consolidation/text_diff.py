"""
Text Diff Size Calculator.

Measures how much a legislative text changed between two stages as the
number of non-whitespace characters changed.

The comparison is case-insensitive and runs on non-blank, trimmed lines.
Lines that differ only in whitespace are equal. Changed line blocks are
diffed character by character and written as a single merged line where
deleted text is wrapped in ``<old#>...<#old>`` and inserted text in
``<new#>...<#new>``. A deletion directly followed by an insertion is a
substitution and counts ``max(deleted, inserted)``; any other span counts
its own length.
"""
import logging
import re
from difflib import SequenceMatcher
from typing import List, Optional

from gazette_collector.core.exceptions import InvalidInputError

logger = logging.getLogger(__name__)

OLD_START_TAG = "<old#>"
OLD_END_TAG = "<#old>"
NEW_START_TAG = "<new#>"
NEW_END_TAG = "<#new>"

DIFF_REGEX = re.compile(
    "(?:({old_start})(.*?){old_end}|({new_start})(.*?){new_end})".format(
        old_start=re.escape(OLD_START_TAG),
        old_end=re.escape(OLD_END_TAG),
        new_start=re.escape(NEW_START_TAG),
        new_end=re.escape(NEW_END_TAG),
    ),
    re.DOTALL,
)
WHITESPACE_REGEX = re.compile(r"\s+")


def length_without_whitespace(text: str) -> int:
    return len(WHITESPACE_REGEX.sub("", text))


def split_into_lines(text: str) -> List[str]:
    """Non-blank lines of the text, trimmed."""
    return [line.strip() for line in text.strip().split("\n") if line.strip()]


def whitespace_key(line: str) -> str:
    return WHITESPACE_REGEX.sub(" ", line.strip())


class TextDiffSizeCalculator:
    """Non-whitespace character difference between two text revisions."""

    def compute(self, old_text: Optional[str], new_text: Optional[str]) -> int:
        """
        Count the non-whitespace characters changed from old_text to new_text.

        Args:
            old_text: Earlier revision
            new_text: Later revision

        Returns:
            Number of changed characters, 0 when the texts differ only in
            whitespace or case

        Raises:
            InvalidInputError: If either text is None or blank
        """
        self._validate(old_text, "Older")
        self._validate(new_text, "New")

        old_lines = split_into_lines(old_text.lower())
        new_lines = split_into_lines(new_text.lower())

        total = 0
        for merged_line in self.changed_lines(old_lines, new_lines):
            total += self.count_tagged_changes(merged_line)

        logger.debug(f"Diff size {total} between texts of {len(old_lines)} and {len(new_lines)} lines")
        return total

    def changed_lines(self, old_lines: List[str], new_lines: List[str]) -> List[str]:
        """
        Merged, tagged representations of the line blocks that changed.

        Equal blocks are left out.
        """
        matcher = SequenceMatcher(
            None,
            [whitespace_key(line) for line in old_lines],
            [whitespace_key(line) for line in new_lines],
            autojunk=False,
        )
        merged = []
        for tag, i1, i2, j1, j2 in matcher.get_opcodes():
            if tag == "equal":
                continue
            merged.append(self.tag_inline_changes(
                "\n".join(old_lines[i1:i2]),
                "\n".join(new_lines[j1:j2]),
            ))
        return merged

    @staticmethod
    def tag_inline_changes(old_chunk: str, new_chunk: str) -> str:
        """Merge two chunks into one string with character level change tags."""
        matcher = SequenceMatcher(None, old_chunk, new_chunk, autojunk=False)
        parts = []
        for tag, i1, i2, j1, j2 in matcher.get_opcodes():
            if tag == "equal":
                parts.append(old_chunk[i1:i2])
                continue
            if tag in ("delete", "replace"):
                parts.append(f"{OLD_START_TAG}{old_chunk[i1:i2]}{OLD_END_TAG}")
            if tag in ("insert", "replace"):
                parts.append(f"{NEW_START_TAG}{new_chunk[j1:j2]}{NEW_END_TAG}")
        return "".join(parts)

    @staticmethod
    def count_tagged_changes(line: str) -> int:
        """Sum the tagged spans of a merged line, counting substitutions once."""
        matches = list(DIFF_REGEX.finditer(line))
        total = 0
        index = 0
        while index < len(matches):
            match = matches[index]
            if match.group(1) is not None:
                deleted = length_without_whitespace(match.group(2))
                is_substitution = (
                    line.startswith(NEW_START_TAG, match.end())
                    and index + 1 < len(matches)
                )
                if is_substitution:
                    index += 1
                    inserted = length_without_whitespace(matches[index].group(4))
                    total += max(deleted, inserted)
                else:
                    total += deleted
            else:
                total += length_without_whitespace(match.group(4))
            index += 1
        return total

    @staticmethod
    def _validate(text: Optional[str], info: str) -> None:
        if text is None or not text.strip():
            raise InvalidInputError(f"{info} text is invalid (null or blank)")
