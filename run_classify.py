# run_classify.py

from __future__ import annotations

import argparse
import json
import logging

from streamint.classify.classifier import ClassificationResult
from streamint.classify.service import StreamService
from streamint.reference.curriculum import REFERENCE_SUBJECTS, reference_registry, reference_subject_store
from streamint.reference.registry import InMemoryStreamStore


SUBJECT_NAMES = {s.id: s.name for s in REFERENCE_SUBJECTS}


def print_verdict(subject_ids, res: ClassificationResult, report=None) -> None:
    """
    Human-readable verdict from the machine-readable output.
    Keeps it short enough to skim in a terminal.
    """
    print("\n" + "=" * 60)
    if isinstance(subject_ids, (list, tuple)):
        names = ", ".join(SUBJECT_NAMES.get(sid, str(sid)) for sid in subject_ids)
        print(f"SUBJECTS: {list(subject_ids)}  ({names})")
    else:
        print(f"SUBJECTS: {subject_ids!r}")
    if not res.valid:
        print("INVALID COMBINATION")
        for err in res.errors:
            print(f"- {err}")
        return

    print(f"STREAM: {res.stream_name}  (id={res.stream_id})")
    print(f"Matched rule: {res.matched_rule}")

    if report:
        print("\nEvaluation order:")
        for ev in report["evaluations"]:
            mark = "✓" if ev["matches"] else "✗"
            detail = ev["rule"] or ev["reasons"].get("step") or ""
            print(f"  {mark} [{ev['priority']:>3}] {ev['stream_name']} {detail}")


def main():
    ap = argparse.ArgumentParser(description="Classify A/L subject combinations into streams")
    ap.add_argument("subject_ids", nargs="*", type=int, help="Three subject ids, e.g. 6 1 2")
    ap.add_argument("--batch", help="JSON file holding a list of subject id triples")
    ap.add_argument("--explain", action="store_true", help="Show every stream's verdict")
    ap.add_argument("--json", action="store_true", help="Print machine-readable output")
    ap.add_argument("--verbose", action="store_true")
    args = ap.parse_args()

    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.WARNING)

    service = StreamService(
        subjects=reference_subject_store(),
        streams=InMemoryStreamStore(reference_registry()),
    )

    if args.batch:
        with open(args.batch) as f:
            triples = json.load(f)
        results = service.classify_batch(triples)
        if args.json:
            print(json.dumps([r.to_dict() for r in results], indent=2))
            return
        for triple, res in zip(triples, results):
            print_verdict(triple, res)
        return

    if not args.subject_ids:
        ap.error("provide three subject ids or --batch FILE")

    res = service.classify(args.subject_ids)
    report = service.explain(args.subject_ids) if args.explain else None

    if args.json:
        print(json.dumps(report if report else res.to_dict(), indent=2))
        return

    print_verdict(args.subject_ids, res, report)


if __name__ == "__main__":
    main()
