"""
codeclip - project context for LLM assistants, and a clipboard monitor that
applies the edits they send back.
"""

__version__ = "1.0.0"


def get_version() -> str:
    """Get version from package metadata or fallback to hardcoded."""
    try:
        from importlib.metadata import PackageNotFoundError, version
    except ImportError:
        return __version__

    try:
        return version("codeclip")
    except PackageNotFoundError:
        return __version__
