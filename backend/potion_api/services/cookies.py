"""
Potion API — Session Cookie Extraction
=======================================

What:  Parses a raw `Cookie` request header and pulls out the session token.
Why:   The Auth Gate needs the token before it can verify anything, and a
       missing or empty header must read as "no token", never as a crash.
How:   Starlette's cookie_parser does the parsing (quoting, last occurrence
       wins, split on the first '='). This wrapper makes it total: None and
       "" give {}, and fragments without a key are dropped.

Parsing rules:
    "a=1; b=2"        → {"a": "1", "b": "2"}
    "a=1; a=2"        → {"a": "2"}
    "tok=x=y"         → {"tok": "x=y"}
    'a="quoted"'      → {"a": "quoted"}
    "junk; =v; a=1"   → {"a": "1"}
    None / ""         → {}
"""

from typing import Dict, Optional

from starlette.requests import cookie_parser


def parse_cookie_header(raw: Optional[str]) -> Dict[str, str]:
    """Parse a semicolon-delimited `key=value` cookie header into a dict."""
    if not raw:
        return {}
    return {key: value for key, value in cookie_parser(raw).items() if key}


def extract_session_token(raw: Optional[str], cookie_name: str) -> Optional[str]:
    """Return the session token stored under `cookie_name`, or None when absent."""
    return parse_cookie_header(raw).get(cookie_name)
