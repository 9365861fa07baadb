"""Default catalog sets used for seeding and admin refresh."""

from __future__ import annotations

from ecobingo.bingo.types import Category

DefaultItem = tuple[str, Category, int]

PRIMARY_ITEMS: tuple[DefaultItem, ...] = (
    # Planning & documentation
    ("Create digital project charter (no printing)", Category.DIGITAL, 10),
    ("Schedule virtual standup meetings", Category.DIGITAL, 10),
    ("Use collaborative online tools instead of paper", Category.DIGITAL, 10),
    ("Set up paperless project documentation", Category.DIGITAL, 15),
    # Team management
    ("Organize remote team building activity", Category.COMMUNITY, 15),
    ("Implement digital-only meeting notes", Category.DIGITAL, 10),
    ("Create reusable project templates", Category.WASTE, 20),
    ("Use energy-efficient devices for work", Category.ENERGY, 15),
    # Process optimization
    ("Automate repetitive tasks to save resources", Category.ENERGY, 25),
    ("Conduct virtual code/design reviews", Category.DIGITAL, 15),
    ("Optimize workflows to reduce waste", Category.WASTE, 20),
    ("Use cloud storage instead of physical servers", Category.ENERGY, 20),
    # Delivery
    ("Deploy using green hosting providers", Category.ENERGY, 25),
    ("Implement sustainable coding practices", Category.GENERAL, 30),
    ("Measure and reduce digital carbon footprint", Category.GENERAL, 30),
    ("Complete project with zero paper usage", Category.WASTE, 35),
)

ALTERNATIVE_ITEMS: tuple[DefaultItem, ...] = (
    ("Use renewable energy for development setup", Category.ENERGY, 20),
    ("Implement green CI/CD pipelines", Category.ENERGY, 25),
    ("Choose sustainable third-party services", Category.GENERAL, 20),
    ("Optimize database queries for efficiency", Category.ENERGY, 15),
    ("Conduct virtual client presentations", Category.DIGITAL, 10),
    ("Use digital signatures for contracts", Category.DIGITAL, 10),
    ("Implement paperless invoicing system", Category.DIGITAL, 15),
    ("Create digital project portfolio", Category.DIGITAL, 15),
    ("Optimize code for lower energy consumption", Category.ENERGY, 25),
    ("Use efficient algorithms and data structures", Category.ENERGY, 20),
    ("Implement lazy loading and caching", Category.ENERGY, 20),
    ("Minimize API calls and network requests", Category.ENERGY, 15),
    ("Choose eco-friendly project management tools", Category.GENERAL, 15),
    ("Track and report sustainability metrics", Category.GENERAL, 25),
    ("Educate team on sustainable practices", Category.COMMUNITY, 20),
    ("Achieve carbon-neutral project delivery", Category.GENERAL, 40),
)

DEFAULT_SETS: tuple[tuple[DefaultItem, ...], ...] = (PRIMARY_ITEMS, ALTERNATIVE_ITEMS)
