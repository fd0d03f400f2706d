import argparse
import json
import logging
import sys
from pathlib import Path

from .config import configure_logging, load_config
from .fs import load_tree, save_tree
from .indexer import flatten, flatten_forest
from .labels import identity_label
from .mutations import (
    StructuralCycleError, add_child, extract_subtree, move_subtree, remove_subtree, shift_child
)
from .relationship import relationship_between
from .search import search_members


def _members(cfg, args):
    trees = [load_tree(Path(args.tree))] + [load_tree(Path(p)) for p in (args.with_trees or [])]
    if len(trees) == 1:
        return flatten(trees[0], default_gender=cfg.default_gender)
    return flatten_forest(trees, default_gender=cfg.default_gender)


def _write(args, tree):
    out = Path(args.output or args.tree)
    save_tree(out, tree)
    print(f"Tree written to {out} ({len(tree)} persons)")


def cmd_flatten(cfg, args):
    members = _members(cfg, args)
    if args.json:
        print(json.dumps([m.to_dict() for m in members], ensure_ascii=False, indent=2))
        return
    for m in members:
        print(f"{'  ' * m.depth}{m.id}: {identity_label(m, cfg.vocabulary, cfg.default_gender)}")


def cmd_relate(cfg, args):
    try:
        result = relationship_between(_members(cfg, args), args.person_a, args.person_b, **cfg.resolver_options())
    except KeyError as e:
        print(f"Person with ID {e.args[0]} not found.")
        return 1
    if args.json:
        print(json.dumps(result.to_dict(), ensure_ascii=False, indent=2))
        return
    for label in result.labels:
        print(label)


def cmd_search(cfg, args):
    res = search_members(_members(cfg, args), args.query, limit=args.limit)
    if not res:
        print("No persons found.")
    for m in res:
        print(f"ID: {m.id}, Name: {identity_label(m, cfg.vocabulary, cfg.default_gender)}")


def cmd_add_child(cfg, args):
    tree = load_tree(Path(args.tree))
    new_tree = add_child(tree, args.parent_id, args.name, child_id=args.child_id)
    if new_tree is tree:
        print(f"Person with ID {args.parent_id} not found.")
        return 1
    _write(args, new_tree)


def cmd_move(cfg, args):
    tree = load_tree(Path(args.tree))
    try:
        new_tree = move_subtree(tree, args.new_parent_id, args.node_id)
    except StructuralCycleError as e:
        print(f"Move refused: {e}")
        return 1
    if new_tree is tree:
        print("Person not found; tree unchanged.")
        return 1
    _write(args, new_tree)


def cmd_remove(cfg, args):
    tree = load_tree(Path(args.tree))
    new_tree = remove_subtree(tree, args.node_id)
    if new_tree is None:
        print("The root cannot be removed; delete the tree file instead.")
        return 1
    if new_tree is tree:
        print(f"Person with ID {args.node_id} not found.")
        return 1
    _write(args, new_tree)


def cmd_shift(cfg, args):
    tree = load_tree(Path(args.tree))
    new_tree = shift_child(tree, args.child_id, up=not args.down)
    if new_tree is tree:
        print(f"Person with ID {args.child_id} not found or already at the end of its siblings.")
        return 1
    _write(args, new_tree)


def cmd_extract(cfg, args):
    tree = load_tree(Path(args.tree))
    branch = extract_subtree(tree, args.node_id)
    if branch is None:
        print(f"Person with ID {args.node_id} not found.")
        return 1
    save_tree(Path(args.output), branch)
    print(f"Branch {branch.root.full_name} written to {args.output} ({len(branch)} persons)")


def cmd_serve(cfg, args):
    import uvicorn

    uvicorn.run("kinship_tree.web.app:app", host=args.host, port=args.port)


def build_parser():
    parser = argparse.ArgumentParser(description="Family tree editing and kinship queries")
    parser.add_argument("--config", default=None, help="Path to a JSON config file")
    subparsers = parser.add_subparsers(dest="command")

    def tree_arg(p, with_forest=False):
        p.add_argument("tree", help="Tree JSON file")
        if with_forest:
            p.add_argument("--with", dest="with_trees", action="append", help="Linked tree JSON file (repeatable)")

    p = subparsers.add_parser("flatten", help="List every person with depth and ancestry")
    tree_arg(p, with_forest=True)
    p.add_argument("--json", action="store_true")
    p.set_defaults(func=cmd_flatten)

    p = subparsers.add_parser("relate", help="Name the relationship of person B to person A")
    tree_arg(p, with_forest=True)
    p.add_argument("person_a")
    p.add_argument("person_b")
    p.add_argument("--json", action="store_true")
    p.set_defaults(func=cmd_relate)

    p = subparsers.add_parser("search", help="Search persons by name")
    tree_arg(p, with_forest=True)
    p.add_argument("query")
    p.add_argument("--limit", type=int, default=20)
    p.set_defaults(func=cmd_search)

    p = subparsers.add_parser("add-child", help="Append a new child to a person")
    tree_arg(p)
    p.add_argument("parent_id")
    p.add_argument("name")
    p.add_argument("--child-id", default=None)
    p.add_argument("-o", "--output", default=None, help="Write here instead of overwriting the input")
    p.set_defaults(func=cmd_add_child)

    p = subparsers.add_parser("move", help="Move a branch under a new parent")
    tree_arg(p)
    p.add_argument("node_id")
    p.add_argument("new_parent_id")
    p.add_argument("-o", "--output", default=None)
    p.set_defaults(func=cmd_move)

    p = subparsers.add_parser("remove", help="Remove a person and all descendants")
    tree_arg(p)
    p.add_argument("node_id")
    p.add_argument("-o", "--output", default=None)
    p.set_defaults(func=cmd_remove)

    p = subparsers.add_parser("shift", help="Swap a child with its adjacent sibling")
    tree_arg(p)
    p.add_argument("child_id")
    p.add_argument("--down", action="store_true", help="Swap with the next sibling instead of the previous one")
    p.add_argument("-o", "--output", default=None)
    p.set_defaults(func=cmd_shift)

    p = subparsers.add_parser("extract", help="Copy a branch into a new tree file with fresh ids")
    tree_arg(p)
    p.add_argument("node_id")
    p.add_argument("output")
    p.set_defaults(func=cmd_extract)

    p = subparsers.add_parser("serve", help="Run the JSON API")
    p.add_argument("--host", default="127.0.0.1")
    p.add_argument("--port", type=int, default=8000)
    p.set_defaults(func=cmd_serve)
    return parser


def main(argv=None):
    parser = build_parser()
    args = parser.parse_args(argv)
    if not args.command:
        parser.print_help()
        return 0
    cfg = load_config(args.config)
    configure_logging(cfg)
    try:
        return args.func(cfg, args) or 0
    except (OSError, ValueError) as e:
        logging.debug("command %s failed", args.command, exc_info=True)
        print(f"Error: {e}")
        return 1


if __name__ == "__main__":
    sys.exit(main())
