"""Rule-based chapter segmentation of novel text."""
import re
from typing import Dict, List, Optional, Pattern, Union

_NUMBER_WORDS = (
    "one|two|three|four|five|six|seven|eight|nine|ten|eleven|twelve|thirteen|"
    "fourteen|fifteen|sixteen|seventeen|eighteen|nineteen|twenty|thirty|forty|"
    "fifty|sixty|seventy|eighty|ninety|hundred"
)

# "第一章 ...", "第12章", "Chapter 3", "CHAPTER IV", "Chapter Twenty-One"
DEFAULT_HEADING_PATTERN = (
    r"^[ \t　]*"
    r"(?:第[零〇一二两三四五六七八九十百千万\d]+章"
    r"|(?i:chapter[ \t]+(?:\d+|[ivxlcdm]+|(?:" + _NUMBER_WORDS + r")(?:-(?:" + _NUMBER_WORDS + r"))?)\b))"
    r"[^\n]*"
)

Chapter = Dict[str, str]


class RuleBasedChapterSplitter:
    """
    Splits a novel into chapters.

    Chapter headings anchored at line start are used as split points. When
    the text has no headings it is cut into chunks of about
    ``char_threshold`` characters, each extended to the next line break so
    no line is split.
    """

    def __init__(
        self,
        char_threshold: int = 1000,
        title_length: int = 50,
        heading_pattern: Optional[Union[str, Pattern[str]]] = None,
    ):
        """
        Initialize splitter.

        Args:
            char_threshold: Minimum chunk size for the fallback split
            title_length: Characters of chunk content used as a fallback title
            heading_pattern: Regex matching a whole heading line
        """
        if char_threshold < 1:
            raise ValueError("char_threshold must be at least 1")

        self.char_threshold = char_threshold
        self.title_length = title_length
        if heading_pattern is None:
            heading_pattern = DEFAULT_HEADING_PATTERN
        if isinstance(heading_pattern, str):
            heading_pattern = re.compile(heading_pattern, re.MULTILINE)
        self.heading_pattern = heading_pattern

    def split(self, text: str) -> List[Chapter]:
        """
        Split text into ``{"title", "content"}`` entries in reading order.

        Args:
            text: Novel text

        Returns:
            List[Chapter]: Chapters; empty when the text is blank
        """
        if not text or not text.strip():
            return []

        chapters = self.split_by_headings(text)
        if chapters:
            return chapters
        return self.split_by_length(text)

    def split_by_headings(self, text: str) -> List[Chapter]:
        """
        Split at heading lines.

        A heading with no body still yields a chapter with empty content.
        Non-blank text before the first heading becomes a leading chapter
        titled from its content.
        """
        matches = list(self.heading_pattern.finditer(text))
        if not matches:
            return []

        chapters: List[Chapter] = []

        preface = text[:matches[0].start()].strip()
        if preface:
            chapters.append({"title": self._title_from(preface), "content": preface})

        for index, match in enumerate(matches):
            end = matches[index + 1].start() if index + 1 < len(matches) else len(text)
            chapters.append({
                "title": match.group(0).strip(),
                "content": text[match.end():end].strip(),
            })

        return chapters

    def split_by_length(self, text: str) -> List[Chapter]:
        """Split into line-aligned chunks of at least ``char_threshold`` characters."""
        chapters: List[Chapter] = []
        start = 0
        length = len(text)

        while start < length:
            if start + self.char_threshold >= length:
                end = length
            else:
                newline = text.find("\n", start + self.char_threshold)
                end = length if newline == -1 else newline

            content = text[start:end].strip()
            if content:
                chapters.append({"title": self._title_from(content), "content": content})

            # Skip the newline the chunk ended on
            start = end + 1

        return chapters

    def _title_from(self, content: str) -> str:
        return content[:self.title_length].replace("\n", " ")
