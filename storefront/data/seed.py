# storefront/data/seed.py
from decimal import Decimal

from storefront.data.database import Base, SessionLocal, engine
from storefront.data.models import ProductModel, ProductVariantModel
from storefront.utils.logging import get_logger

logger = get_logger(__name__)

DEMO_CATALOG = [
    {
        "name": "Trail Runner",
        "description": "Lightweight trail running shoe",
        "price": Decimal("89.99"),
        "variants": [
            {"color": "black", "sizes": ["8", "9", "10", "11"], "images": ["/img/trail-black.jpg"], "stock": 25},
            {"color": "olive", "sizes": ["9", "10"], "images": ["/img/trail-olive.jpg"], "stock": 10},
        ],
    },
    {
        "name": "City Boot",
        "description": "Waterproof leather boot",
        "price": Decimal("149.00"),
        "variants": [
            {"color": "brown", "sizes": ["9", "10", "11"], "images": ["/img/boot-brown.jpg"], "stock": 8},
        ],
    },
    {
        "name": "Canvas Low",
        "description": "Everyday canvas sneaker",
        "price": Decimal("49.50"),
        "variants": [
            {"color": "white", "sizes": ["7", "8", "9"], "images": [], "stock": 40},
        ],
    },
]


def seed():
    Base.metadata.create_all(bind=engine)
    db = SessionLocal()
    try:
        # only seed if empty
        if db.query(ProductModel).first():
            logger.info("Catalog already seeded")
            return
        for entry in DEMO_CATALOG:
            product = ProductModel(
                name=entry["name"],
                description=entry["description"],
                price=entry["price"],
                variants=[ProductVariantModel(**v) for v in entry["variants"]],
            )
            db.add(product)
        db.commit()
        logger.info(f"Seeded {len(DEMO_CATALOG)} products")
    finally:
        db.close()


if __name__ == "__main__":
    seed()
