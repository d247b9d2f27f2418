import argparse
import asyncio
import json

from app.infrastructure.external.blob_store.local_blob_store import LocalBlobStore
from app.infrastructure.logging import setup_logging
from app.infrastructure.storage.minio import get_minio
from app.infrastructure.storage.sparql import get_sparql
from app.interfaces.service_dependencies import (
    get_blob_store,
    get_reconciliation_service,
)
from core.config import get_settings


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="对比元数据目录与文件存储，报告两侧的分歧")
    parser.add_argument(
        "--remove-orphans",
        action="store_true",
        help="删除没有任何元数据引用的孤儿文件",
    )
    parser.add_argument(
        "--grace-seconds",
        type=float,
        default=60.0,
        help="删除孤儿文件前的等待时间，等待后重新确认，默认60秒",
    )
    return parser.parse_args()


async def main(remove_orphans: bool, grace_seconds: float) -> None:
    setup_logging()
    settings = get_settings()

    sparql_client = get_sparql()
    await sparql_client.init()
    minio_client = None
    if settings.storage_backend.lower() == "minio":
        minio_client = get_minio()
        await minio_client.init()
        await minio_client.ensure_bucket(settings.minio_bucket_name)

    blob_store = get_blob_store()
    if isinstance(blob_store, LocalBlobStore):
        blob_store.init()

    try:
        report = await get_reconciliation_service().sweep(
            remove_orphans=remove_orphans,
            grace_seconds=grace_seconds,
        )
        print(json.dumps(report.model_dump(), ensure_ascii=False, indent=2))
    finally:
        await sparql_client.shutdown()
        if minio_client is not None:
            await minio_client.shutdown()


if __name__ == "__main__":
    args = parse_args()
    asyncio.run(main(args.remove_orphans, args.grace_seconds))
