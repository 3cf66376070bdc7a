"""Sample collections shared by the tests."""

SAMPLE_TOOLS = [
    {
        "id": 1,
        "name": "Alpha",
        "category": "developer",
        "platform": ["Windows"],
        "tags": ["editor"],
        "difficulty": "advanced",
        "license": "MIT",
        "download": "https://example.com/alpha",
        "description": "First tool",
        "featured": False,
    },
    {
        "id": 2,
        "name": "Beta",
        "category": "design",
        "platform": ["macOS", "Linux"],
        "tags": ["image"],
        "difficulty": "beginner",
        "license": "Free",
        "icon": "🎨",
        "download": "https://example.com/beta",
        "description": "Second tool",
        "featured": True,
    },
    {
        "id": 3,
        "name": "Gamma",
        "category": "ai",
        "platform": ["Linux"],
        "tags": ["llm"],
        "difficulty": "intermediate",
        "license": "GPL",
        "download": "https://example.com/gamma",
        "description": "Third tool",
        "featured": True,
    },
]

SAMPLE_GUIDES = [
    {"id": 10, "title": "Install Alpha", "slug": "install-alpha", "excerpt": "Setup", "content": "Download and run."},
    {"id": 11, "title": "Tune Gamma", "slug": "tune-gamma", "excerpt": "Models", "content": "Pick a model.", "tags": ["ai"]},
]

SAMPLE_BLOG = [
    {"id": 20, "title": "Old news", "slug": "old-news", "excerpt": "", "content": "one two",
     "category": "news", "date": "2023-01-01"},
    {"id": 21, "title": "Fresh review", "slug": "fresh-review", "excerpt": "", "content": "three",
     "category": "reviews", "date": "2024-05-01"},
    {"id": 22, "title": "Undated", "slug": "undated", "excerpt": "", "content": "four"},
]
