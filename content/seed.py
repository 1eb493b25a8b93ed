"""
content/seed.py -- Sample portal content for fresh installs and demos.

Loaded by `python main.py seed-content`, or at startup when
SEED_SAMPLE_CONTENT=true and the content store is empty.
"""

from content.models import GalleryItem, NewsItem, SliderItem
from content.store import ContentStore

_IMG = "https://images.unsplash.com/{photo}?auto=format&fit=crop&w={w}&q=80"

SAMPLE_SLIDES: list[SliderItem] = [
    SliderItem(
        title="Advancing Research Excellence",
        subtitle="Discover groundbreaking research and academic innovations shaping our future.",
        image_url=_IMG.format(photo="photo-1541339907198-e08756dedf3f", w=1920),
        cta_text="Learn More",
        cta_link="#about",
        secondary_cta_text="Latest Research",
        secondary_cta_link="#news",
    ),
    SliderItem(
        title="Innovative Research Programs",
        subtitle="Our cutting-edge facilities enable breakthrough discoveries in multiple disciplines.",
        image_url=_IMG.format(photo="photo-1613926053599-096398b9d842", w=1920),
        cta_text="View Research",
        cta_link="#gallery",
        secondary_cta_text="Connect With Us",
        secondary_cta_link="#contacts",
    ),
    SliderItem(
        title="Collaborative Education",
        subtitle="Join a community of scholars pushing the boundaries of knowledge and innovation.",
        image_url=_IMG.format(photo="photo-1523240795612-9a054b0db644", w=1920),
        cta_text="Our Mission",
        cta_link="#about",
    ),
]

SAMPLE_NEWS: list[NewsItem] = [
    NewsItem(
        title="New Quantum Computing Breakthrough",
        content=(
            "Our researchers have achieved a significant milestone in quantum computing stability, "
            "paving the way for practical applications in secure communications and system modeling."
        ),
        summary="A significant milestone in quantum computing stability.",
        image_url=_IMG.format(photo="photo-1532094349884-543bc11b234d", w=600),
        category="Science",
        date="2023-06-12T00:00:00+00:00",
    ),
    NewsItem(
        title="AI Model Predicts Climate Patterns",
        content=(
            "A new machine learning model developed by our computer science department can predict "
            "climate patterns with 95% accuracy, helping disaster preparedness in vulnerable regions."
        ),
        summary="A new model predicts climate patterns with 95% accuracy.",
        image_url=_IMG.format(photo="photo-1557804506-669a67965ba0", w=600),
        category="Technology",
        date="2023-06-08T00:00:00+00:00",
    ),
    NewsItem(
        title="Annual Research Symposium Announced",
        content=(
            "The university will host its annual research symposium on July 15-17, featuring keynote "
            "speakers from leading global institutions."
        ),
        summary="The annual research symposium runs July 15-17.",
        image_url=_IMG.format(photo="photo-1505373877841-8d25f7d46678", w=600),
        category="Events",
        date="2023-05-28T00:00:00+00:00",
    ),
]

SAMPLE_GALLERY: list[GalleryItem] = [
    GalleryItem(
        title="Advanced Chemical Analysis",
        image_url=_IMG.format(photo="photo-1581093450021-4a7360e9a6b5", w=500),
        category="Science",
    ),
    GalleryItem(
        title="Robotics Laboratory",
        image_url=_IMG.format(photo="photo-1581092918056-0c4c3acd3789", w=500),
        category="Technology",
    ),
    GalleryItem(
        title="Stem Cell Research",
        image_url=_IMG.format(photo="photo-1579154204601-01588f351e67", w=500),
        category="Medicine",
    ),
    GalleryItem(
        title="Archaeological Findings",
        image_url=_IMG.format(photo="photo-1524995997946-a1c2e315a42f", w=500),
        category="Humanities",
    ),
]


def seed_sample_content(store: ContentStore) -> int:
    """Load the sample content into an empty store. Returns rows written (0 if not empty)."""
    if not store.is_empty():
        return 0
    return store.seed(SAMPLE_NEWS, SAMPLE_GALLERY, SAMPLE_SLIDES)
