import argparse
import logging
import pathlib
import sys

from dotenv import find_dotenv, load_dotenv

ROOT = pathlib.Path(__file__).resolve().parents[1]
sys.path.insert(0, str(ROOT))


def main() -> None:
    parser = argparse.ArgumentParser(description="Install the demo cooks, customer and recipes")
    parser.add_argument("--table", default=None, help="KV table name (defaults to KV_TABLE)")
    args = parser.parse_args()

    env_path = find_dotenv()
    if env_path:
        load_dotenv(dotenv_path=env_path)

    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s [%(name)s] %(message)s")

    from src.app.config import settings
    from src.app.infra.kv.supabase_kv import SupabaseKVStore
    from src.app.services.seed import seed_demo_data

    if settings.is_production:
        print("refusing to seed demo data with APP_ENV=%s" % settings.APP_ENV)
        sys.exit(1)

    added = seed_demo_data(SupabaseKVStore(table_name=args.table))
    print("records added:", added)


if __name__ == "__main__":
    main()
