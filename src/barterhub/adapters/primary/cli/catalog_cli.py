"""Catalog CLI commands"""
import argparse

from ....configuration.container import get_product_catalog
from ....domain.shared.exceptions import DomainException
from .user_selector import get_user_id_from_args, add_user_argument, UserSelectionError


def add_product_command(args: argparse.Namespace) -> int:
    """Handle catalog add command"""
    try:
        owner_id = get_user_id_from_args(args)
        product = get_product_catalog().add_product(owner_id, args.title)
    except (DomainException, UserSelectionError) as e:
        print(f"❌ Error: {e}")
        return 1

    print(f"✅ Listed product {product.product_id}: {product.title}")
    return 0


def show_product_command(args: argparse.Namespace) -> int:
    """Handle catalog show command"""
    product = get_product_catalog().find_product(args.product_id)
    if product is None:
        print(f"❌ Error: Product {args.product_id} not found")
        return 1

    print(f"Product {product.product_id}:")
    print(f"  Title: {product.title}")
    print(f"  Owner: {product.owner_id}")
    print(f"  Available: {'yes' if product.available else 'no'}")
    return 0


def list_products_command(args: argparse.Namespace) -> int:
    """Handle catalog list command"""
    try:
        owner_id = get_user_id_from_args(args)
    except UserSelectionError as e:
        print(f"❌ Error: {e}")
        return 1

    products = get_product_catalog().find_by_owner(owner_id)
    if not products:
        print(f"No products listed by user {owner_id}")
        return 0

    print(f"Products of user {owner_id} ({len(products)}):")
    for product in products:
        available = "✓" if product.available else "✗"
        print(f"  [{product.product_id}] {product.title} {available}")
    return 0


def set_available_command(args: argparse.Namespace) -> int:
    """Handle catalog available/unavailable commands"""
    try:
        product = get_product_catalog().set_available(args.product_id, args.available)
    except DomainException as e:
        print(f"❌ Error: {e}")
        return 1

    state = "available" if product.available else "unavailable"
    print(f"✅ Product {product.product_id} is now {state}")
    return 0


def setup_catalog_commands(subparsers):
    """Setup catalog CLI commands"""
    catalog_parser = subparsers.add_parser("catalog", help="Product catalog")
    catalog_subparsers = catalog_parser.add_subparsers(dest="catalog_command")

    add_parser = catalog_subparsers.add_parser("add", help="List a product")
    add_parser.add_argument("title")
    add_user_argument(add_parser)
    add_parser.set_defaults(func=add_product_command)

    show_parser = catalog_subparsers.add_parser("show", help="Show a product")
    show_parser.add_argument("product_id", type=int)
    show_parser.set_defaults(func=show_product_command)

    list_parser = catalog_subparsers.add_parser("list", help="List your products")
    add_user_argument(list_parser)
    list_parser.set_defaults(func=list_products_command)

    available_parser = catalog_subparsers.add_parser("available", help="Mark a product available")
    available_parser.add_argument("product_id", type=int)
    available_parser.set_defaults(func=set_available_command, available=True)

    unavailable_parser = catalog_subparsers.add_parser("unavailable", help="Mark a product unavailable")
    unavailable_parser.add_argument("product_id", type=int)
    unavailable_parser.set_defaults(func=set_available_command, available=False)
