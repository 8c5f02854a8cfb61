"""
AI Helper Utilities
Common utility functions for the honeymoon AI service
"""

from typing import List, Sequence

from ..schemas.ai_schemas import HoneymoonPackage

CURRENCY_SYMBOLS = {
    "EUR": "€",
    "USD": "$",
    "TRY": "₺",
    "TL": "₺",
}


def truncate_text(text: str, max_length: int = 100, suffix: str = "...") -> str:
    """
    Truncate text to maximum length
    
    Args:
        text: Text to truncate
        max_length: Maximum length
        suffix: Suffix to add (default: "...")
    
    Returns:
        str: Truncated text
    """
    if len(text) <= max_length:
        return text
    
    return text[:max_length - len(suffix)] + suffix


def format_price(price: float, currency: str = "EUR") -> str:
    """
    Format price as currency string
    
    Args:
        price: Price value
        currency: ISO code (EUR, USD, TRY)
    
    Returns:
        str: Formatted price (e.g., "€4,500")
    """
    symbol = CURRENCY_SYMBOLS.get(currency.upper(), f"{currency} ")
    return f"{symbol}{price:,.0f}"


def first_name(display_name: str, default: str = "there") -> str:
    """First word of a display name, or a friendly default"""
    parts = display_name.split()
    return parts[0] if parts else default


def dedupe_packages(packages: Sequence[HoneymoonPackage], limit: int = 0) -> List[HoneymoonPackage]:
    """
    Remove duplicate packages by id, keeping the first occurrence
    
    Args:
        packages: Candidate packages in priority order
        limit: Maximum number to return (0 = no limit)
    
    Returns:
        List[HoneymoonPackage]: Unique packages in first-seen order
    """
    seen = set()
    unique = []
    for package in packages:
        if package.id in seen:
            continue
        seen.add(package.id)
        unique.append(package)
        if limit and len(unique) >= limit:
            break
    
    return unique
