import argparse
import sys
import threading
import time

from dotenv import load_dotenv

# Load environment variables first
load_dotenv()

from config.config import Config
from models.search_models import PipelineResult, Source, SourceSelection
from orchestrator.core import SymptomSearchOrchestrator
from orchestrator.errors import BackendCallError, QueryValidationError


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Translate symptoms into medical terms and search medical sources"
    )
    parser.add_argument("symptoms", help="Symptom description in everyday language")
    for source in Source:
        parser.add_argument(
            f"--no-{source.value}",
            dest=source.value,
            action="store_false",
            help=f"Do not search {source.label}",
        )
    parser.add_argument(
        "--skip-answer", action="store_true", help="Skip the AI generated answer"
    )
    return parser


def selection_from_args(args: argparse.Namespace) -> SourceSelection:
    return SourceSelection.from_mapping({source.value: getattr(args, source.value) for source in Source})


def show_loading_animation(stop_event: threading.Event) -> None:
    """
    Show a loading animation in the console.

    Args:
        stop_event: A threading.Event that will be set to stop the animation
    """
    while not stop_event.is_set():
        for char in "|/-\\":
            if stop_event.is_set():
                break
            sys.stdout.write(f"\r\033[93mSearching {char}\033[0m")
            sys.stdout.flush()
            time.sleep(0.1)
    sys.stdout.write("\r" + " " * 20 + "\r")
    sys.stdout.flush()


def print_result(result: PipelineResult) -> None:
    print(f"\n=== Medical terms ({result.translation.provider.value}) ===")
    print(result.translation.text)

    if result.answer is not None:
        heading = "AI answer" if result.answer.is_grounded else "AI answer (not grounded)"
        print(f"\n=== {heading} ===")
        print(result.answer.answer_text)
        for source in result.answer.grounding_sources:
            print(f"  - {source.title}: {source.url}")
    elif result.answer_error is not None:
        print(f"\n[AI answer unavailable: {result.answer_error.message}]")

    print(f"\n=== Search results ({len(result.results)}) ===")
    for hit in result.results:
        print(f"[{hit.source.label}] {hit.title}")
        print(f"    {hit.snippet}")
        print(f"    {hit.url}")
    if result.search_error is not None:
        print(f"\n[Search failed: {result.search_error.message}]")


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)
    orchestrator = SymptomSearchOrchestrator(Config.from_env())

    stop_animation = threading.Event()
    loading_thread = threading.Thread(target=show_loading_animation, args=(stop_animation,))
    loading_thread.daemon = True
    loading_thread.start()
    try:
        result = orchestrator.run_sync(
            args.symptoms,
            selection_from_args(args),
            include_answer=not args.skip_answer,
        )
    except QueryValidationError as e:
        print(f"Error: {e.message}")
        return 2
    except BackendCallError as e:
        print(f"Error: {e}")
        return 1
    finally:
        stop_animation.set()
        loading_thread.join()

    print_result(result)
    return 0


if __name__ == "__main__":
    sys.exit(main())
