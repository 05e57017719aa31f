"""nrtk_sync.content: запись файлов поколения, sitemap и публикация дерева."""

from .materializer import MaterializeReport, Materializer
from .sitemap import build_sitemap
from .writer import ContentFile, ContentKind, write_content

__all__ = [
    "ContentFile",
    "ContentKind",
    "write_content",
    "build_sitemap",
    "Materializer",
    "MaterializeReport",
]
