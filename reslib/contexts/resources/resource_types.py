"""
Resource type tags and the R field names resources map to.

The tag set is closed: the archive reader rejects anything not listed here.
"""

import re
from enum import Enum
from typing import Optional


class ResourceType(str, Enum):
    ANIM = "anim"
    ANIMATOR = "animator"
    ARRAY = "array"
    ATTR = "attr"
    BOOL = "bool"
    COLOR = "color"
    DIMEN = "dimen"
    DRAWABLE = "drawable"
    FONT = "font"
    FRACTION = "fraction"
    ID = "id"
    INTEGER = "integer"
    INTERPOLATOR = "interpolator"
    LAYOUT = "layout"
    MENU = "menu"
    MIPMAP = "mipmap"
    NAVIGATION = "navigation"
    PLURALS = "plurals"
    RAW = "raw"
    STRING = "string"
    STYLE = "style"
    STYLEABLE = "styleable"
    TRANSITION = "transition"
    XML = "xml"

    @classmethod
    def from_tag(cls, tag: str) -> Optional["ResourceType"]:
        """Return the type for a tag, or None if the tag is unrecognized."""
        try:
            return cls(tag)
        except ValueError:
            return None

    @property
    def is_combining(self) -> bool:
        """Types whose repeated declarations merge instead of conflicting."""
        return self in (ResourceType.ID, ResourceType.STYLEABLE)


# Directory name prefixes allowed directly under a resource root.
# "values" holds many typed resources; every other directory is one file per resource.
VALUES_DIRECTORY = "values"
FILE_RESOURCE_DIRECTORIES = {
    "anim": ResourceType.ANIM,
    "animator": ResourceType.ANIMATOR,
    "color": ResourceType.COLOR,
    "drawable": ResourceType.DRAWABLE,
    "font": ResourceType.FONT,
    "interpolator": ResourceType.INTERPOLATOR,
    "layout": ResourceType.LAYOUT,
    "menu": ResourceType.MENU,
    "mipmap": ResourceType.MIPMAP,
    "navigation": ResourceType.NAVIGATION,
    "raw": ResourceType.RAW,
    "transition": ResourceType.TRANSITION,
    "xml": ResourceType.XML,
}

# Element tags inside <resources> and the type each declares
VALUES_TAGS = {
    "array": ResourceType.ARRAY,
    "string-array": ResourceType.ARRAY,
    "integer-array": ResourceType.ARRAY,
    "attr": ResourceType.ATTR,
    "bool": ResourceType.BOOL,
    "color": ResourceType.COLOR,
    "declare-styleable": ResourceType.STYLEABLE,
    "dimen": ResourceType.DIMEN,
    "drawable": ResourceType.DRAWABLE,
    "fraction": ResourceType.FRACTION,
    "id": ResourceType.ID,
    "integer": ResourceType.INTEGER,
    "plurals": ResourceType.PLURALS,
    "string": ResourceType.STRING,
    "style": ResourceType.STYLE,
}

# Bookkeeping tags that declare nothing compiled into the symbol table
IGNORED_VALUES_TAGS = {
    "add-resource",
    "eat-comment",
    "java-symbol",
    "overlayable",
    "public",
    "public-group",
    "skip",
    "staging-public-group",
}

# Reserved words of the language the R class is generated in
JAVA_KEYWORDS = frozenset(
    """
    abstract assert boolean break byte case catch char class const continue default
    do double else enum extends final finally float for goto if implements import
    instanceof int interface long native new package private protected public return
    short static strictfp super switch synchronized this throw throws transient try
    void volatile while true false null
    """.split()
)

JAVA_UNSAFE_CHARACTERS = re.compile(r"[.\-:]")


def java_field_name(name: str) -> str:
    """Resource name as it appears in R ("Theme.App" -> "Theme_App")."""
    return JAVA_UNSAFE_CHARACTERS.sub("_", name)
