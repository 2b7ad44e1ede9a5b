import argparse
from datetime import datetime, timezone

from code_critic.adapters.kv_store import FileKeyValueStore
from code_critic.config import get_settings
from code_critic.services.history_store import HistoryStore


def main() -> None:
    settings = get_settings()
    parser = argparse.ArgumentParser(description="List or clear saved code analyses.")
    parser.add_argument("--file", default=settings.history_file, help="history store file")
    parser.add_argument("--limit", type=int, default=10)
    parser.add_argument("--delete", metavar="ID", help="delete one analysis by id")
    parser.add_argument("--clear", action="store_true", help="remove the whole history")
    args = parser.parse_args()

    history = HistoryStore(
        FileKeyValueStore(args.file),
        key=settings.history_key,
        max_entries=settings.history_max_entries,
        snippet_length=settings.snippet_length,
    )
    if args.clear:
        history.clear()
        print("History cleared.")
        return
    if args.delete:
        history.delete(args.delete)
        print("Deleted", args.delete)
        return

    analyses = history.get_all()
    print(f"{len(analyses)} saved analyses in {args.file}")
    for analysis in analyses[: args.limit]:
        created = datetime.fromtimestamp(analysis.timestamp / 1000, tz=timezone.utc)
        first_line = analysis.code_snippet.splitlines()[0] if analysis.code_snippet else ""
        result = analysis.result
        print(
            f"{analysis.id}  {created:%Y-%m-%d %H:%M}  "
            f"errors={len(result.errors)} security={len(result.security_vulnerabilities)} "
            f"refactoring={len(result.refactoring_suggestions)}  {first_line[:60]}"
        )


if __name__ == "__main__":
    main()
