"""Cleansing - duplicate detection and data fusion for JSON-like records.

Record linkage finds pairs of records that describe the same entity;
fusion consolidates clusters of such duplicates into one value.
"""

__version__ = "0.1.0"

# Lazy imports keep `import cleansing` free of the pydantic/rapidfuzz stack
def __getattr__(name: str):
    if name == "linkage":
        from cleansing import linkage
        return linkage
    if name == "fusion":
        from cleansing import fusion
        return fusion
    if name == "utils":
        from cleansing import utils
        return utils
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
