"""Script to ingest a directory of text files into an event."""

import argparse
import asyncio
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent))

from eventrag.core.dependencies import services
from eventrag.core.exceptions import RAGError

TEXT_SUFFIXES = {".txt", ".md", ".csv"}


async def ingest_directory(owner_id: str, event_name: str, directory: Path) -> None:
    """Create an event and ingest every text file found in ``directory``."""
    await services.initialize()
    try:
        event = await services.event_service.create(owner_id, event_name)
        print(f"Created event {event.name} ({event.id})")

        total_chunks = 0
        for path in sorted(directory.iterdir()):
            if path.suffix.lower() not in TEXT_SUFFIXES:
                continue
            content = path.read_text(encoding="utf-8")
            try:
                result = await services.ingest_processor.ingest_upload(
                    owner_id,
                    event.id,
                    filename=path.name,
                    content=content,
                    mimetype="text/plain",
                    size=path.stat().st_size,
                )
            except RAGError as e:
                print(f"Failed {path.name}: [{e.code}] {e.message}")
                continue
            total_chunks += result.chunk_count
            print(f"Ingested {path.name}: {result.chunk_count} chunks")

        print(f"\nIngested {total_chunks} chunks into event {event.id}")
    finally:
        await services.shutdown()


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument("owner", help="Owner identity, e.g. an email address")
    parser.add_argument("event", help="Name of the event to create")
    parser.add_argument("directory", type=Path)
    args = parser.parse_args()
    asyncio.run(ingest_directory(args.owner, args.event, args.directory))
