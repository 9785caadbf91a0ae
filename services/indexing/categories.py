"""Closed product category vocabulary."""

from shared.errors.product_errors import ProductValidationError

CATEGORIES: dict[str, str] = {
    "saas": "SaaS",
    "payments": "Payments",
    "productivity": "Productivity",
    "analytics": "Analytics",
    "ai": "AI",
    "design": "Design",
    "development": "Development",
    "marketing": "Marketing",
    "finance": "Finance",
    "ecommerce": "E-commerce",
    "communication": "Communication",
    "education": "Education",
    "security": "Security",
    "devops": "DevOps",
    "content": "Content",
}


def validate_categories(categories: list[str] | None, max_categories: int) -> list[str]:
    """Normalize categories against the vocabulary.

    Values are lower-cased and deduplicated; anything past max_categories is dropped.

    Raises:
        ProductValidationError: If a value is not part of the vocabulary.
    """
    if not categories:
        return []
    normalized = list(dict.fromkeys(c.strip().lower() for c in categories if c and c.strip()))
    unknown = [c for c in normalized if c not in CATEGORIES]
    if unknown:
        raise ProductValidationError(
            f"Unknown categories: {', '.join(unknown)}",
            hint=f"Allowed categories: {', '.join(CATEGORIES)}",
        )
    return normalized[:max_categories]
