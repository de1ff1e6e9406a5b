"""
Crucible CLI - Command-line interface for the engine.

Usage:
    crucible recipes [--recipes FILE]          List the recipe catalog
    crucible elements [--recipes FILE]         List every reachable element
    crucible combine A B [--recipes FILE]      Resolve one pair
    crucible serve [--host HOST] [--port N]    Run the progress server
"""

import argparse
import sys

from .errors import CatalogError
from .logging_config import setup_logging


def main(argv=None):
    """Main CLI entry point."""
    parser = argparse.ArgumentParser(
        description="Crucible - Element Combination Engine",
        prog="crucible",
    )
    parser.add_argument("--verbose", "-v", action="store_true", help="Enable debug logging")
    subparsers = parser.add_subparsers(dest="command", help="Commands")

    # Recipes command
    recipes_parser = subparsers.add_parser("recipes", help="List the recipe catalog")
    recipes_parser.add_argument("--recipes", dest="recipes_file", help="Path to a JSON recipe table")

    # Elements command
    elements_parser = subparsers.add_parser("elements", help="List every reachable element")
    elements_parser.add_argument("--recipes", dest="recipes_file", help="Path to a JSON recipe table")

    # Combine command
    combine_parser = subparsers.add_parser("combine", help="Combine two elements")
    combine_parser.add_argument("first", help="First element name")
    combine_parser.add_argument("second", help="Second element name")
    combine_parser.add_argument("--recipes", dest="recipes_file", help="Path to a JSON recipe table")

    # Serve command
    serve_parser = subparsers.add_parser("serve", help="Run the progress server")
    serve_parser.add_argument("--host", default="127.0.0.1", help="Bind address")
    serve_parser.add_argument("--port", type=int, default=8000, help="Bind port")

    args = parser.parse_args(argv)
    setup_logging(verbose=args.verbose)

    if args.command == "recipes":
        cmd_recipes(args)
    elif args.command == "elements":
        cmd_elements(args)
    elif args.command == "combine":
        cmd_combine(args)
    elif args.command == "serve":
        cmd_serve(args)
    else:
        parser.print_help()
        sys.exit(1)


def _load_catalog(args):
    from .engine_core.catalog import RecipeCatalog, default_catalog

    if not args.recipes_file:
        return default_catalog()
    try:
        return RecipeCatalog.from_json(args.recipes_file)
    except CatalogError as e:
        print(f"Error: {e}")
        sys.exit(1)


def cmd_recipes(args):
    """List the recipe catalog."""
    from .engine_core.catalog import format_key

    catalog = _load_catalog(args)
    print(f"Recipes: {len(catalog)}")
    for key, outputs in catalog:
        print(f"  {format_key(key)} -> {', '.join(outputs)}")


def cmd_elements(args):
    """List every element reachable from the primitives."""
    catalog = _load_catalog(args)
    reachable = catalog.reachable()
    print(f"Reachable elements: {len(reachable)}")
    for name in reachable:
        print(f"  {name}")

    unreachable = [name for name in catalog.elements() if name not in reachable]
    if unreachable:
        print("\nUnreachable:")
        for name in unreachable:
            print(f"  - {name}")


def cmd_combine(args):
    """Resolve a single pair."""
    catalog = _load_catalog(args)
    outputs = catalog.resolve(args.first, args.second)
    if outputs is None:
        print(f"{args.first} + {args.second}: nothing happens")
        sys.exit(1)

    print(f"{args.first} + {args.second} -> {', '.join(outputs)}")
    if catalog.is_explosive(args.first, args.second):
        print("  (explosive)")


def cmd_serve(args):
    """Run the progress server."""
    import uvicorn

    print(f"Serving progress API on http://{args.host}:{args.port}")
    uvicorn.run("crucible.api.app:app", host=args.host, port=args.port)


if __name__ == "__main__":
    main()
