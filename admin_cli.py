"""
admin_cli.py
------------
Command-line access to the same procedures the viewer uses, for scripting.

Usage examples:
python admin_cli.py namespaces --index my-index
python admin_cli.py list --index my-index --namespace docs --limit 20
python admin_cli.py fetch --index my-index --namespace docs --id doc-1
python admin_cli.py delete-all --index my-index --namespace scratch --yes
python admin_cli.py star docs
"""
import argparse
import json
import sys
from typing import List, Optional

from procedures import Api, ProcedureError, build_api
from utils.config import MAX_PAGE_LIMIT, PINECONE_INDEX_NAME, STARRED_DB_PATH

def _print(model) -> None:
    print(json.dumps(model.model_dump(), indent=2))

def build_parser() -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser(description="Inspect and manage a Pinecone index.")
    ap.add_argument("--db", default=STARRED_DB_PATH, help="SQLite file holding starred namespaces")
    sub = ap.add_subparsers(dest="command", required=True)

    def with_index(p, namespace=False):
        p.add_argument("--index", default=PINECONE_INDEX_NAME, help="Pinecone index name")
        if namespace:
            p.add_argument("--namespace", required=True)
        return p

    with_index(sub.add_parser("namespaces", help="List namespaces with vector counts"))
    p = with_index(sub.add_parser("list", help="List one page of vector ids"), namespace=True)
    p.add_argument("--limit", type=int, default=None, help=f"Page size (1-{MAX_PAGE_LIMIT})")
    p.add_argument("--token", default=None, help="Pagination token from a previous page")
    p = with_index(sub.add_parser("fetch", help="Show one vector"), namespace=True)
    p.add_argument("--id", required=True, dest="vector_id")
    p = with_index(sub.add_parser("delete", help="Delete one vector"), namespace=True)
    p.add_argument("--id", required=True, dest="vector_id")
    p = with_index(sub.add_parser("delete-all", help="Delete ALL vectors in a namespace"), namespace=True)
    p.add_argument("--yes", action="store_true", help="Confirm the irreversible delete")

    sub.add_parser("starred", help="List starred namespaces")
    for name in ("star", "unstar", "is-starred"):
        sub.add_parser(name).add_argument("namespace")
    return ap

def run(args: argparse.Namespace, api: Api) -> int:
    cmd = args.command
    if cmd == "namespaces":
        _print(api.pinecone.list_namespaces(index_name=args.index))
    elif cmd == "list":
        _print(api.pinecone.list_vectors_in_namespace(
            index_name=args.index, namespace=args.namespace,
            pagination_token=args.token, limit=args.limit,
        ))
    elif cmd == "fetch":
        detail = api.pinecone.fetch_vector(index_name=args.index, namespace=args.namespace,
                                           vector_id=args.vector_id)
        print(detail.stringified)
        return 0 if detail.found else 1
    elif cmd == "delete":
        _print(api.pinecone.delete_vector(index_name=args.index, namespace=args.namespace,
                                          vector_id=args.vector_id))
    elif cmd == "delete-all":
        if not args.yes:
            print("Refusing to delete all vectors without --yes", file=sys.stderr)
            return 2
        _print(api.pinecone.delete_all_vectors(index_name=args.index, namespace=args.namespace))
    elif cmd == "starred":
        _print(api.starred_namespaces.list())
    elif cmd == "star":
        _print(api.starred_namespaces.star(namespace=args.namespace))
    elif cmd == "unstar":
        _print(api.starred_namespaces.unstar(namespace=args.namespace))
    elif cmd == "is-starred":
        _print(api.starred_namespaces.is_starred(namespace=args.namespace))
    return 0

def main(argv: Optional[List[str]] = None, api: Optional[Api] = None) -> int:
    args = build_parser().parse_args(argv)
    api = api or build_api(args.db)
    try:
        return run(args, api)
    except ProcedureError as e:
        print(f"❌ {e}", file=sys.stderr)
        return 1

if __name__ == "__main__":
    sys.exit(main())
