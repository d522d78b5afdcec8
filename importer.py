"""Import questions from .json/.jsonl into Supabase, or seed the built-in sample questions."""
import argparse
import json
import logging
import sys
from pathlib import Path

from examsim.database import get_database
from examsim.errors import ExamSimError, InvalidQuestion
from examsim.question_bank import SAMPLE_QUESTIONS, add_questions, validate_question

logger = logging.getLogger(__name__)


def parse_line(line: str) -> dict | None:
    """Parse one JSONL line into a raw question dict. Returns None if blank or not JSON."""
    line = line.strip()
    if not line:
        return None
    try:
        raw = json.loads(line)
    except json.JSONDecodeError:
        logger.warning(f"Skipping line that is not JSON: {line[:60]}")
        return None
    return raw if isinstance(raw, dict) else None


def load_questions(path: Path) -> list[dict]:
    """Read a .jsonl (one object per line) or .json (list of objects) file."""
    if path.suffix == ".jsonl":
        with path.open("r", encoding="utf-8") as f:
            return [row for row in (parse_line(line) for line in f) if row]
    with path.open("r", encoding="utf-8") as f:
        data = json.load(f)
    if not isinstance(data, list):
        raise ValueError(f"{path} must contain a JSON list of questions")
    return [row for row in data if isinstance(row, dict)]


def split_valid(rows: list[dict]) -> tuple[list[dict], list[tuple[int, str]]]:
    """Separate rows that pass validation from (row number, reason) rejects."""
    valid, rejected = [], []
    for n, row in enumerate(rows, 1):
        try:
            validate_question(row)
        except InvalidQuestion as e:
            rejected.append((n, str(e)))
            continue
        valid.append(row)
    return valid, rejected


def run_import(path: Path | None = None, samples: bool = False, chunk_size: int = 200, dry_run: bool = False) -> int:
    if samples:
        rows = list(SAMPLE_QUESTIONS)
        source = "built-in samples"
    else:
        if path is None or not path.exists():
            raise FileNotFoundError(f"Question file not found: {path}")
        rows = load_questions(path)
        source = str(path)

    valid, rejected = split_valid(rows)
    for n, reason in rejected:
        logger.warning(f"Row {n} rejected: {reason}")

    if dry_run:
        print(f"Dry run: would insert {len(valid)} questions from {source} ({len(rejected)} rejected)")
        if valid:
            print("Sample row:", validate_question(valid[0]))
        return len(valid)

    db = get_database()
    total = 0
    n_chunks = (len(valid) + chunk_size - 1) // chunk_size
    for i in range(0, len(valid), chunk_size):
        chunk = valid[i : i + chunk_size]
        logger.info("Inserting chunk %d/%d (%d rows)", i // chunk_size + 1, n_chunks, len(chunk))
        total += len(add_questions(db, chunk))
    print(f"Inserted {total} questions from {source}")
    return total


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO, format="%(levelname)s: %(message)s")
    parser = argparse.ArgumentParser(description="Import questions into the Supabase questions table.")
    parser.add_argument("path", nargs="?", default=None, help="Path to .json or .jsonl question file")
    parser.add_argument("--samples", action="store_true", help="Insert the built-in sample questions instead of a file")
    parser.add_argument("--chunk-size", type=int, default=200, help="Insert chunk size (default 200)")
    parser.add_argument("--dry-run", action="store_true", help="Validate only, do not insert")
    args = parser.parse_args()
    if not args.samples and not args.path:
        parser.error("give a question file or --samples")
    try:
        run_import(
            path=Path(args.path) if args.path else None,
            samples=args.samples,
            chunk_size=args.chunk_size,
            dry_run=args.dry_run,
        )
    except (ExamSimError, ValueError, FileNotFoundError) as e:
        logger.error(str(e))
        sys.exit(1)
