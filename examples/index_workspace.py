"""Example script: index a folder and ask it a question."""
import argparse
import asyncio
import sys

from workspace_rag import IndexProgress, RAGService
from workspace_rag.extraction import ProcessExtractionCollaborator

def print_progress(progress: IndexProgress) -> None:
    print(f"[{progress.percentage:3d}%] {progress.file_name}")

async def main(workspace: str, query: str, config_path: str) -> int:
    """Index ``workspace`` and print the best matches for ``query``."""
    service = RAGService.from_config_file(config_path, on_progress=print_progress)

    async with service:
        async with ProcessExtractionCollaborator(service.bridge, service.config.extraction.max_workers):
            result = await service.index_workspace(workspace)

        if not result["success"]:
            print(f"\nIndexing failed: {result['error']}")
            return 1
        print(f"\nIndexed {result['chunksIndexed']} chunks")

        context = await service.get_context(query)
        print("\nContext:")
        print("=" * 50)
        print(context.text or "(no matches)")
        print("\nSources:")
        for i, source in enumerate(context.sources, 1):
            print(f"{i}. {source.file_name} ({source.section})")

    return 0

if __name__ == "__main__":
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument("workspace", help="Folder to index")
    parser.add_argument("query", help="Question to search for")
    parser.add_argument("--config", default="config.yaml", help="Path to config file")
    args = parser.parse_args()
    try:
        sys.exit(asyncio.run(main(args.workspace, args.query, args.config)))
    except KeyboardInterrupt:
        print("\nOperation cancelled by user")
        sys.exit(1)
