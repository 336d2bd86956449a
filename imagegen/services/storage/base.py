import re
from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime


@dataclass
class UploadResult:
    key: str  # storage key produced from the path template
    public_url: str
    size: int


class BlobStore(ABC):
    """Durable storage for selected images."""

    name = ""

    @abstractmethod
    def upload(self, data, filename, content_type, metadata=None):
        """Store bytes under the templated key for `filename`.

        Returns:
            UploadResult
        """

    @abstractmethod
    def delete(self, key):
        """Remove an object by key."""

    @abstractmethod
    def health_check(self):
        """Return True when the store is configured and reachable."""


def expand_path_template(template, filename, now=None):
    """Expand {year}, {month}, {day} and {filename} in a storage path template.

    Month and day are zero-padded to two digits. Unknown tokens are left as
    they are.
    """
    now = now or datetime.now()
    return (
        template.replace("{year}", f"{now.year:04d}")
        .replace("{month}", f"{now.month:02d}")
        .replace("{day}", f"{now.day:02d}")
        .replace("{filename}", filename)
    )


# Smart punctuation that has a reasonable ASCII spelling
_HEADER_REPLACEMENTS = {
    "\u2018": "'",
    "\u2019": "'",
    "\u201a": "'",
    "\u201b": "'",
    "\u201c": '"',
    "\u201d": '"',
    "\u201e": '"',
    "\u201f": '"',
    "\u2014": "--",  # em dash
    "\u2013": "-",  # en dash
    "\u2026": "...",
    "\u00a0": " ",  # non-breaking space
    "\u2022": "*",  # bullets
    "\u2023": "*",
    "\u2043": "*",
    "\u2219": "*",
    "\u25e6": "*",
    "\u00b7": "-",  # middle dot
}
_CONTROL_WHITESPACE = re.compile(r"[\t\n\r]")
_NON_PRINTABLE_ASCII = re.compile(r"[^\x20-\x7e]")
_SPACES = re.compile(r"\s+")


def sanitize_for_header(text, max_length=500):
    """Make free text safe for object metadata, which travels as HTTP headers.

    The result is printable ASCII, at most `max_length` characters, and
    sanitizing it again returns it unchanged.
    """
    text = _CONTROL_WHITESPACE.sub(" ", text)
    for char, replacement in _HEADER_REPLACEMENTS.items():
        text = text.replace(char, replacement)
    text = _NON_PRINTABLE_ASCII.sub("", text)
    text = _SPACES.sub(" ", text).strip()
    return text[:max(max_length, 0)].rstrip()
