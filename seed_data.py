# seed_data.py

from sqlmodel import Session, select

from sopopped.core.security import hash_password
from sopopped.database import create_db_and_tables, engine
from sopopped.models.product import Product
from sopopped.models.user import User
# remaining tables must be registered before create_all()
from sopopped.models import cart as _cart_models  # noqa: F401
from sopopped.models import order as _order_models  # noqa: F401
from sopopped.models import session as _session_models  # noqa: F401

ADMIN_EMAIL = "admin@sopopped.ph"
ADMIN_PASSWORD = "Admin#2024"

PRODUCTS = [
    ("Classic Butter Popcorn", "Movie-night classic with real butter.", 85.0, 50),
    ("Caramel Popcorn", "Crunchy caramel-coated kernels.", 120.0, 40),
    ("Cheese Popcorn", "Sharp cheddar dusting.", 95.0, 40),
    ("Ube Popcorn", "Sweet purple yam glaze.", 135.0, 25),
    ("Truffle Popcorn", "Truffle oil and parmesan.", 250.0, 10),
]


def main():
    create_db_and_tables()

    with Session(engine) as session:
        if session.exec(select(User).where(User.email == ADMIN_EMAIL)).first() is None:
            session.add(
                User(
                    email=ADMIN_EMAIL,
                    password_hash=hash_password(ADMIN_PASSWORD),
                    first_name="Store",
                    last_name="Admin",
                    phone="09170000000",
                    role="admin",
                )
            )
            print(f"Created admin {ADMIN_EMAIL}")

        existing = set(session.exec(select(Product.name)).all())
        for name, description, price, quantity in PRODUCTS:
            if name in existing:
                continue
            session.add(Product(name=name, description=description, price=price, quantity=quantity))
            print(f"Added product {name}")

        session.commit()

    print("Seeding done.")


if __name__ == "__main__":
    main()
