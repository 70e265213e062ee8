import argparse
import logging
import os
import random
import sys
from decimal import Decimal

# Add 'backend' folder to Python path
sys.path.append(os.path.abspath(os.path.dirname(__file__)))

from database import SessionLocal, init_db
from models.category import Category
from models.product import Product
from models.users import User, ROLE_ADMIN
from utils.hashing import get_password_hash

logger = logging.getLogger("populate_db")

# Configuration
DEFAULT_ADMIN_EMAIL = "admin@example.com"
PRODUCTS_PER_CATEGORY = 8

CATEGORIES = [
    ("Electronics", "Devices, gadgets and accessories"),
    ("Clothing", "Apparel for men and women"),
    ("Home goods", "Everyday household goods"),
]
PRODUCT_NAMES = {
    "Electronics": ["Headphones", "Keyboard", "Mouse", "Monitor", "Charger", "Speaker", "Webcam", "Router"],
    "Clothing": ["T-Shirt", "Jeans", "Jacket", "Sweater", "Cap", "Scarf", "Socks", "Hoodie"],
    "Home goods": ["Mug", "Lamp", "Pillow", "Towel", "Vase", "Candle", "Blanket", "Clock"],
}
# End Configuration


def ensure_admin(session, email: str, password: str) -> User:
    admin = session.query(User).filter(User.email == email).first()
    if admin:
        return admin
    admin = User(
        email=email,
        password_hash=get_password_hash(password),
        role=ROLE_ADMIN,
        first_name="Store",
        last_name="Admin",
    )
    session.add(admin)
    session.flush()
    logger.info("Created admin account %s", email)
    return admin


def seed_catalog(session) -> int:
    """Insert the default categories and a handful of products in each. Existing categories are kept."""
    created = 0
    for name, description in CATEGORIES:
        category = session.query(Category).filter(Category.name == name).first()
        if category:
            continue
        category = Category(name=name, description=description, is_active=True)
        session.add(category)
        session.flush()

        for idx, product_name in enumerate(PRODUCT_NAMES[name][:PRODUCTS_PER_CATEGORY], start=1):
            price = Decimal(str(round(random.uniform(5.00, 300.00), 2)))
            # Every third product is on sale
            discounted = (price * Decimal("0.8")).quantize(Decimal("0.01")) if idx % 3 == 0 else None
            session.add(Product(
                name=product_name,
                description=f"{name}: {product_name.lower()}",
                sku=f"{name[:3].upper()}-{idx:04d}",
                price=price,
                discounted_price=discounted,
                stock_quantity=random.randint(0, 100),
                image_url=f"https://picsum.photos/seed/{name[:3].lower()}{idx}/300/300",
                category_id=category.id,
            ))
            created += 1
    return created


def populate_database(admin_email: str, admin_password: str):
    """Main execution function to populate database."""
    init_db()
    session = SessionLocal()
    try:
        ensure_admin(session, admin_email, admin_password)
        created = seed_catalog(session)
        session.commit()
        logger.info("Seed finished, %d products created", created)
    except Exception:
        session.rollback()
        logger.exception("Seeding failed")
        raise
    finally:
        session.close()


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(name)s: %(message)s")
    parser = argparse.ArgumentParser(description="Create the admin account and sample catalog.")
    parser.add_argument("--admin-email", default=DEFAULT_ADMIN_EMAIL)
    parser.add_argument("--admin-password", default=os.getenv("ADMIN_PASSWORD", "admin123"))
    args = parser.parse_args()
    populate_database(args.admin_email, args.admin_password)
