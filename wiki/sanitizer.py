"""
HTML sanitization of user submitted text.
"""

import nh3


def sanitize(text: str) -> str:
    """
    Strip unsafe markup (scripts, event handlers, javascript: links...).
    """
    return nh3.clean(text)
