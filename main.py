#!/usr/bin/env python3
"""
Food ordering service -- operator CLI.

Usage:
  python main.py seed
  python main.py seed --reset
  python main.py seed --reset --password s3cret-demo
  python main.py create-user --email ana@example.com --name "Ana" --role manager --country india
  python main.py mint-token --email nick@slooze.com

Environment variables:
  SECRET_KEY     Token signing key (or DEBUG=true for an auto-generated one).
  DATABASE_DIR   Directory holding the SQLite files.
"""

import argparse
import getpass
import sys
from dataclasses import dataclass
from typing import Optional

from sqlalchemy.exc import IntegrityError

from auth.models import User
from auth.rbac import Country, Role
from auth.store import UserStore
from auth.tokens import create_access_token, hash_password
from catalog.models import MenuItem, Restaurant
from catalog.store import CatalogStore
from orders.store import OrderStore
from payments.models import PaymentMethod
from payments.store import PaymentStore

DEFAULT_SEED_PASSWORD = "password123"

# ---------------------------------------------------------------------------
# Demo data
# ---------------------------------------------------------------------------

# (email, name, role, country)
SEED_USERS = [
    ("nick@slooze.com", "Nick Fury", "admin", "america"),
    ("marvel@slooze.com", "Captain Marvel", "manager", "india"),
    ("america@slooze.com", "Captain America", "manager", "america"),
    ("thanos@slooze.com", "Thanos", "member", "india"),
    ("thor@slooze.com", "Thor", "member", "india"),
    ("travis@slooze.com", "Travis", "member", "america"),
]

_UNSPLASH = "https://images.unsplash.com/photo-{}?w=400"

# (name, description, cuisine, country, image id, rating, menu)
# menu entries: (name, description, price, category)
SEED_RESTAURANTS = [
    (
        "Spice Garden",
        "Authentic North Indian cuisine with traditional flavors",
        "North Indian",
        "india",
        "1517248135467-4c7edcad34c4",
        4.5,
        [
            ("Butter Chicken", "Tender chicken in creamy tomato sauce", 350, "Main Course"),
            ("Paneer Tikka Masala", "Grilled cottage cheese in spicy gravy", 280, "Main Course"),
            ("Garlic Naan", "Fresh baked bread with garlic and butter", 60, "Breads"),
            ("Biryani", "Fragrant basmati rice with spices and meat", 320, "Rice"),
        ],
    ),
    (
        "Dosa Palace",
        "South Indian specialties and crispy dosas",
        "South Indian",
        "india",
        "1552566626-52f8b828add9",
        4.3,
        [
            ("Masala Dosa", "Crispy rice crepe with spiced potato filling", 120, "Dosas"),
            ("Idli Sambar", "Steamed rice cakes with lentil soup", 80, "Breakfast"),
            ("Uttapam", "Thick rice pancake with vegetables", 100, "Dosas"),
            ("Filter Coffee", "Traditional South Indian coffee", 40, "Beverages"),
        ],
    ),
    (
        "Mumbai Street Food",
        "Street food favorites from the heart of Mumbai",
        "Street Food",
        "india",
        "1555396273-367ea4eb4db5",
        4.7,
        [
            ("Pav Bhaji", "Spiced vegetable mash with buttered bread", 90, "Street Food"),
            ("Vada Pav", "Spicy potato fritter in a bun", 50, "Street Food"),
            ("Bhel Puri", "Puffed rice with tangy chutneys", 60, "Chaat"),
        ],
    ),
    (
        "Tandoori Nights",
        "Authentic tandoor-cooked dishes and kebabs",
        "Mughlai",
        "india",
        "1585937421612-70a008356fbe",
        4.6,
        [
            ("Tandoori Chicken", "Marinated chicken cooked in clay oven", 380, "Tandoor"),
            ("Seekh Kebab", "Minced lamb kebabs with spices", 320, "Kebabs"),
            ("Chicken Tikka", "Boneless chicken pieces in tandoor", 280, "Tandoor"),
        ],
    ),
    (
        "Chai & Chaat",
        "Traditional Indian tea house with savory snacks",
        "Cafe",
        "india",
        "1571091718767-18b5b1457add",
        4.2,
        [
            ("Masala Chai", "Traditional spiced Indian tea", 30, "Beverages"),
            ("Samosa Chaat", "Crispy samosas topped with chutneys and yogurt", 80, "Chaat"),
            ("Aloo Tikki", "Spiced potato patties with toppings", 70, "Chaat"),
            ("Kachori", "Deep-fried pastry with spiced lentil filling", 50, "Snacks"),
        ],
    ),
    (
        "Coastal Curry",
        "Fresh seafood with South Indian coastal flavors",
        "Seafood",
        "india",
        "1626777552726-4a6b54c97e46",
        4.4,
        [
            ("Fish Curry", "Fresh fish in tangy coconut curry", 350, "Main Course"),
            ("Prawn Masala", "Juicy prawns in spicy masala gravy", 420, "Main Course"),
            ("Crab Fry", "Crispy fried crab with coastal spices", 480, "Starters"),
            ("Appam with Stew", "Lacy rice pancakes with vegetable stew", 150, "Breakfast"),
        ],
    ),
    (
        "The Burger Joint",
        "Gourmet burgers and classic American comfort food",
        "American",
        "america",
        "1568901346375-23c9450c58cd",
        4.6,
        [
            ("Classic Cheeseburger", "Beef patty with cheese, lettuce, tomato", 12.99, "Burgers"),
            ("Bacon BBQ Burger", "Beef patty with bacon and BBQ sauce", 14.99, "Burgers"),
            ("French Fries", "Crispy golden fries", 4.99, "Sides"),
            ("Milkshake", "Creamy vanilla milkshake", 5.99, "Beverages"),
        ],
    ),
    (
        "Pizza Paradise",
        "New York style pizza with fresh ingredients",
        "Italian-American",
        "america",
        "1513104890138-7c749659a591",
        4.4,
        [
            ("Margherita Pizza", "Classic tomato, mozzarella, and basil", 16.99, "Pizza"),
            ("Pepperoni Pizza", "Loaded with pepperoni and cheese", 18.99, "Pizza"),
            ("Caesar Salad", "Romaine lettuce with Caesar dressing", 8.99, "Salads"),
            ("Garlic Bread", "Toasted bread with garlic butter", 6.99, "Sides"),
        ],
    ),
    (
        "Taco Fiesta",
        "Authentic Mexican tacos and burritos",
        "Mexican",
        "america",
        "1565299585323-38d6b0865b47",
        4.8,
        [
            ("Beef Tacos", "Three soft tacos with seasoned beef", 10.99, "Tacos"),
            ("Chicken Burrito", "Large burrito with grilled chicken", 12.99, "Burritos"),
            ("Nachos Supreme", "Tortilla chips with cheese and toppings", 9.99, "Appetizers"),
            ("Guacamole", "Fresh avocado dip with chips", 6.99, "Sides"),
        ],
    ),
    (
        "Sushi Supreme",
        "Fresh Japanese sushi and sashimi",
        "Japanese",
        "america",
        "1579871494447-9811cf80d66c",
        4.7,
        [
            ("California Roll", "Crab, avocado, and cucumber roll", 12.99, "Rolls"),
            ("Salmon Sashimi", "Fresh sliced salmon", 16.99, "Sashimi"),
            ("Dragon Roll", "Eel and avocado specialty roll", 18.99, "Specialty Rolls"),
        ],
    ),
    (
        "BBQ Smokehouse",
        "Slow-smoked meats and Southern BBQ",
        "BBQ",
        "america",
        "1529193591184-b1d58069ecdd",
        4.5,
        [
            ("Pulled Pork Sandwich", "Slow-smoked pulled pork with coleslaw", 14.99, "Sandwiches"),
            ("Beef Brisket", "12-hour smoked beef brisket", 22.99, "Mains"),
            ("Mac & Cheese", "Creamy Southern-style mac and cheese", 7.99, "Sides"),
        ],
    ),
    (
        "Green Bowl",
        "Healthy salads and grain bowls",
        "Healthy",
        "america",
        "1512621776951-a57141f2eefd",
        4.3,
        [
            ("Quinoa Power Bowl", "Quinoa with roasted vegetables and tahini", 13.99, "Bowls"),
            ("Kale Caesar Salad", "Fresh kale with Caesar dressing and croutons", 11.99, "Salads"),
            ("Acai Bowl", "Acai blend topped with granola and fresh fruits", 12.99, "Bowls"),
            ("Green Smoothie", "Spinach, banana, and almond milk blend", 7.99, "Beverages"),
        ],
    ),
]

_CURRENCY = {"india": "₹", "america": "$"}

# (name, type, last four digits, is_default)
SEED_PAYMENT_METHODS = [
    ("Visa Credit Card", "credit_card", "4242", True),
    ("Mastercard Debit", "debit_card", "5555", False),
    ("UPI Payment", "upi", "9876", False),
]


# ---------------------------------------------------------------------------
# Commands
# ---------------------------------------------------------------------------


@dataclass
class Stores:
    users: UserStore
    catalog: CatalogStore
    orders: OrderStore
    payments: PaymentStore

    def close(self) -> None:
        self.users.close()
        self.catalog.close()
        self.orders.close()
        self.payments.close()


def open_stores() -> Stores:
    return Stores(users=UserStore(), catalog=CatalogStore(), orders=OrderStore(), payments=PaymentStore())


def seed(stores: Stores, password: str = DEFAULT_SEED_PASSWORD, reset: bool = False) -> dict[str, int]:
    """Insert the demo users, restaurants, menus and payment methods.

    With reset=True every store is emptied first (orders included). Without
    it, seeding a database that already has users raises RuntimeError rather
    than mixing demo accounts into real ones.

    Returns the number of rows created per kind.
    """
    if reset:
        stores.orders.delete_all()
        stores.payments.delete_all()
        stores.catalog.delete_all()
        stores.users.delete_all()
    elif stores.users.has_users():
        raise RuntimeError("Database already has users. Re-run with --reset to replace them.")

    # One hash for every demo account; each bcrypt run is deliberately slow.
    hashed = hash_password(password)
    for email, name, role, country in SEED_USERS:
        stores.users.create_user(User(email=email, name=name, role=role, country=country, hashed_password=hashed))

    menu_count = 0
    for name, description, cuisine, country, image_id, rating, menu in SEED_RESTAURANTS:
        restaurant_id = stores.catalog.create_restaurant(
            Restaurant(
                name=name,
                description=description,
                cuisine=cuisine,
                country=country,
                currency_symbol=_CURRENCY[country],
                image_url=_UNSPLASH.format(image_id),
                rating=rating,
            )
        )
        for item_name, item_description, price, category in menu:
            stores.catalog.create_menu_item(
                MenuItem(
                    restaurant_id=restaurant_id,
                    name=item_name,
                    description=item_description,
                    price=float(price),
                    category=category,
                )
            )
            menu_count += 1

    for name, method_type, last_four, is_default in SEED_PAYMENT_METHODS:
        stores.payments.create(
            PaymentMethod(name=name, type=method_type, last_four_digits=last_four, is_default=is_default)
        )

    return {
        "users": len(SEED_USERS),
        "restaurants": len(SEED_RESTAURANTS),
        "menu_items": menu_count,
        "payment_methods": len(SEED_PAYMENT_METHODS),
    }


def create_user(stores: Stores, email: str, name: str, role: str, country: str, password: str) -> int:
    """Create one account. Raises IntegrityError if the email is taken."""
    return stores.users.create_user(
        User(email=email, name=name, role=role, country=country, hashed_password=hash_password(password))
    )


def mint_token(stores: Stores, email: str) -> Optional[str]:
    """Return a fresh token for an existing user, or None if there is no such user."""
    user = stores.users.get_by_email(email)
    if user is None:
        return None
    return create_access_token(user.id, user.email, user.role, user.country)


def _prompt_password() -> Optional[str]:
    first = getpass.getpass("Password: ")
    second = getpass.getpass("Confirm password: ")
    if first != second:
        print("  [!] Passwords do not match.")
        return None
    if not first:
        print("  [!] Password must not be empty.")
        return None
    return first


# ---------------------------------------------------------------------------
# Entry point
# ---------------------------------------------------------------------------


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="food-ordering",
        description="Operator commands for the food ordering service.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python main.py seed --reset
  python main.py create-user --email ana@example.com --name Ana --role member --country india
  python main.py mint-token --email nick@slooze.com
        """,
    )
    sub = parser.add_subparsers(dest="command", metavar="COMMAND")

    seed_p = sub.add_parser("seed", help="Load demo users, restaurants, menus and payment methods")
    seed_p.add_argument("--reset", action="store_true", help="Delete all existing data first")
    seed_p.add_argument(
        "--password",
        default=DEFAULT_SEED_PASSWORD,
        help=f"Password for every demo account (default: {DEFAULT_SEED_PASSWORD})",
    )

    user_p = sub.add_parser("create-user", help="Create a single user account")
    user_p.add_argument("--email", required=True)
    user_p.add_argument("--name", required=True)
    user_p.add_argument("--role", required=True, choices=[r.value for r in Role])
    user_p.add_argument("--country", required=True, choices=[c.value for c in Country])
    user_p.add_argument("--password", help="Account password (prompted for when omitted)")

    token_p = sub.add_parser("mint-token", help="Print a bearer token for an existing user")
    token_p.add_argument("--email", required=True)

    return parser


def main(argv: Optional[list[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        return 0

    stores = open_stores()
    try:
        if args.command == "seed":
            try:
                counts = seed(stores, password=args.password, reset=args.reset)
            except RuntimeError as e:
                print(f"  [!] {e}")
                return 1
            print(
                f"Seeded {counts['users']} users, {counts['restaurants']} restaurants, "
                f"{counts['menu_items']} menu items, {counts['payment_methods']} payment methods."
            )
            for email, _name, role, country in SEED_USERS:
                print(f"  {email:<22} {role:<8} {country}")
            print(f"  Password for all demo accounts: {args.password}")
            return 0

        if args.command == "create-user":
            password = args.password or _prompt_password()
            if password is None:
                return 1
            try:
                user_id = create_user(stores, args.email, args.name, args.role, args.country, password)
            except IntegrityError:
                print(f"  [!] A user with email '{args.email}' already exists.")
                return 1
            print(f"Created user {user_id} ({args.email.lower()}, {args.role}, {args.country}).")
            return 0

        if args.command == "mint-token":
            token = mint_token(stores, args.email)
            if token is None:
                print(f"  [!] No user with email '{args.email}'.")
                return 1
            print(token)
            return 0
    finally:
        stores.close()

    return 0


if __name__ == "__main__":
    sys.exit(main())
