import argparse
import logging
import pathlib
import sys

from dotenv import find_dotenv, load_dotenv

ROOT = pathlib.Path(__file__).resolve().parents[1]
sys.path.insert(0, str(ROOT))


def main() -> None:
    parser = argparse.ArgumentParser(description="Rebuild cook/customer index lists from the primary records")
    parser.add_argument("--table", default=None, help="KV table name (defaults to KV_TABLE)")
    args = parser.parse_args()

    env_path = find_dotenv()
    if env_path:
        load_dotenv(dotenv_path=env_path)

    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s [%(name)s] %(message)s")

    from src.app.infra.kv.supabase_kv import SupabaseKVStore
    from src.app.services.index_sweep import IndexSweeper

    report = IndexSweeper(SupabaseKVStore(table_name=args.table)).run()
    print("fanouts completed:", len(report.fanouts_completed))
    for order_id in report.fanouts_completed:
        print("  ", order_id)
    print("stale fanouts removed:", len(report.stale_fanouts_removed))
    print("indices rewritten:", len(report.indices_rewritten))
    for key in report.indices_rewritten:
        print("  ", key)


if __name__ == "__main__":
    main()
