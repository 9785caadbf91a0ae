"""Canonical tag vocabulary that raw tags are expanded onto, grouped by theme."""

REFERENCE_TAG_GROUPS: dict[str, list[str]] = {
    "payments": [
        "payments", "payment", "checkout", "billing", "stripe", "paypal", "commerce", "ecommerce",
        "subscription", "invoicing",
    ],
    "analytics": [
        "analytics", "tracking", "metrics", "statistics", "stats", "insights", "reporting", "dashboard",
        "data", "visualization",
    ],
    "productivity": [
        "productivity", "automation", "workflow", "efficiency", "tools", "task-management",
        "project-management", "collaboration",
    ],
    "ai": ["ai", "artificial-intelligence", "machine-learning", "ml", "llm", "gpt", "chatbot", "nlp", "deep-learning"],
    "developer": ["developer", "dev", "development", "coding", "programming", "api", "sdk", "devtools", "debugging", "testing"],
    "design": ["design", "ui", "ux", "graphics", "visual", "figma", "prototyping", "wireframe", "mockup", "illustration"],
    "marketing": [
        "marketing", "seo", "advertising", "growth", "campaigns", "email-marketing", "social-media",
        "content-marketing", "lead-generation",
    ],
    "saas": ["saas", "software", "cloud", "platform", "service", "infrastructure", "hosting", "deployment"],
    "social": ["social", "community", "network", "collaboration", "team", "messaging", "chat", "video-conferencing", "communication"],
    "security": [
        "security", "auth", "authentication", "privacy", "encryption", "authorization", "access-control", "compliance",
    ],
    "content": ["content", "cms", "blog", "publishing", "media", "video", "audio", "podcast", "streaming"],
    "education": ["education", "learning", "course", "training", "tutorial", "teaching", "elearning", "online-course"],
    "sales": ["sales", "crm", "customer-relationship", "leads", "pipeline", "customer-management", "sales-automation"],
    "support": ["support", "customer-support", "helpdesk", "tickets", "chat-support", "knowledge-base", "faq"],
    "finance": ["finance", "accounting", "bookkeeping", "expenses", "budgeting", "tax", "financial"],
    "hr": ["hr", "human-resources", "recruiting", "hiring", "onboarding", "talent", "recruitment"],
    "mobile": ["mobile", "ios", "android", "app", "application", "mobile-app", "progressive-web-app", "pwa"],
    "web": ["web", "frontend", "backend", "fullstack", "javascript", "react", "vue", "angular", "web-development"],
    "database": ["database", "storage", "sql", "nosql", "data-storage", "backup", "data-management"],
    "monitoring": ["monitoring", "observability", "logging", "error-tracking", "performance", "uptime", "alerts"],
}

# flattened, first occurrence wins ("collaboration" appears in two groups)
REFERENCE_TAGS: list[str] = list(dict.fromkeys(tag for group in REFERENCE_TAG_GROUPS.values() for tag in group))
