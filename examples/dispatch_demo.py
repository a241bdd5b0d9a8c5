"""
Dispatch walkthrough.

Shows:
1. Writers configured from YAML, each behind its own priority filter
2. String, exception and structured-map messages
3. A broken writer that does not stop the others
4. The delivery failure side-channel

Run:
    python examples/dispatch_demo.py
"""

import tempfile
from pathlib import Path

from dispatchlog import Dispatcher, LogWriter, MemoryWriter, Severity


class FlakyWriter(LogWriter):
    """Stands in for a mail or network writer whose backend is down."""

    def _write(self, representation, event):
        raise ConnectionError("smtp relay unreachable")


def main():
    print("=" * 60)
    print("  dispatchlog walkthrough")
    print("=" * 60)

    log_dir = Path(tempfile.mkdtemp())
    failures = []
    log = Dispatcher(on_error=failures.append)

    # ── 1. Configure writers ──────────────────────────────────
    print("\n[1/4] Configuring writers...")
    log.configure({
        "writers": {
            "console": {"type": "stream", "priority": "WARN", "comparison": "<=", "color": True},
            "errors": {"type": "file", "path": str(log_dir / "errors.log"), "priority": "ERR"},
        },
    })
    recent = MemoryWriter(name="recent", capacity=100)
    log.add_writer(recent)
    log.add_writer(FlakyWriter(name="mail"), Severity.CRIT, "<=")
    for writer in log.status()["writers"]:
        print(f"  {writer['name']:<8} {writer['type']:<13} {', '.join(writer['filters']) or '-'}")

    # ── 2. Log different message shapes ───────────────────────
    print("\n[2/4] Logging...")
    log.log("Service started")
    log.warn("Cache hit rate below 40%")
    try:
        {}["tenant"]
    except KeyError as exc:
        log.err(exc)
    log.log({"errno": 1045, "errstr": "Access denied for user 'app'", "errfile": "db.py", "errline": 17},
            Severity.ERR)

    # ── 3. Broken writer isolated ─────────────────────────────
    print("\n[3/4] Emergency with a broken mail writer...")
    log.emerg("Primary database unreachable")
    print(f"  memory writer holds {recent.count} events")

    # ── 4. Failure side-channel ───────────────────────────────
    print("\n[4/4] Delivery failures...")
    for failure in failures:
        print(f"  {failure.writer.name}: {failure.error} ({failure.event.message})")

    log.close()
    print(f"\nError file: {log_dir / 'errors.log'}")
    print((log_dir / "errors.log").read_text(encoding="utf-8"))


if __name__ == "__main__":
    main()
