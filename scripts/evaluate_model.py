"""Command-line script for evaluating the labeler against gold annotations.

The script decodes every sentence of a prediction file that carries "gold"
labels and compares the predicted entity types with the gold ones, token by
token. It prints precision, recall and F1 score for each entity type and can
write a CSV report of every token where prediction and gold disagree.
"""
import argparse
import csv
import json
import sys
from pathlib import Path

# Add project root to path to allow for package imports
project_root = Path(__file__).parent.parent
if str(project_root) not in sys.path:
    sys.path.insert(0, str(project_root))

from seqlabel.alphabet import LabelAlphabet
from seqlabel.config import load_config
from seqlabel.evaluation import Evaluator
from seqlabel.io_utils import build_encoder, load_predictions
from seqlabel.labeler import TokensLabeler


def main():
    """
    Main entry point for the command-line evaluation script.

    Sentences without gold labels are skipped. The gold annotations are
    parsed with the configured tag schema, so "B-PER" and "PER" style labels
    must match it.
    """
    parser = argparse.ArgumentParser(
        description="Evaluate decoded labels against gold annotations.",
        formatter_class=argparse.ArgumentDefaultsHelpFormatter
    )
    parser.add_argument("--input", required=True, help="Path to the prediction JSON file with 'gold' labels.")
    parser.add_argument("--config", default="config.yaml", help="Path to the configuration YAML file.")
    parser.add_argument(
        "--ignore-missing-labels",
        action="store_true",
        help="Skip gold labels whose entity type is not in the label alphabet instead of failing."
    )
    parser.add_argument("--disagreements-out", help="Optional: Path to write a detailed disagreements CSV file.")
    args = parser.parse_args()

    try:
        print("Loading files...")
        cfg = load_config(args.config)
        predictions = load_predictions(args.input)
        schema = cfg.get_schema()

        annotations = predictions.labels or list(cfg.labels)
        if not annotations:
            raise ValueError("No label alphabet found in the prediction file or the configuration.")
        alphabet = LabelAlphabet.from_annotations(annotations, schema)

        encoder, sentences = build_encoder(predictions)
        examples = [
            (tokens, [schema.parse(g) for g in item.gold])
            for tokens, item in zip(sentences, predictions.sentences)
            if item.gold is not None
        ]
        if not examples:
            raise ValueError(f"No sentence in {args.input} carries 'gold' labels.")

        labeler = TokensLabeler.from_config(encoder, cfg, alphabet)
        evaluator = Evaluator(labeler, examples, ignore_missing_labels=args.ignore_missing_labels)
        stats = evaluator.evaluate()

        print("\n--- Comparison Metrics (vs. Gold) ---")
        print(json.dumps(stats.to_dict(), indent=2))
        print(f"\n{stats}")

        if args.disagreements_out and evaluator.disagreements:
            Path(args.disagreements_out).parent.mkdir(parents=True, exist_ok=True)
            print(f"\nWriting {len(evaluator.disagreements)} disagreements to {args.disagreements_out}...")
            with open(args.disagreements_out, "w", newline="", encoding="utf-8") as f:
                writer = csv.DictWriter(f, fieldnames=["sentence", "index", "token", "predicted", "gold"])
                writer.writeheader()
                writer.writerows(evaluator.disagreements)

    except (FileNotFoundError, ValueError, TypeError, KeyError) as e:
        print(f"\nError: {e}", file=sys.stderr)
        sys.exit(1)

if __name__ == "__main__":
    main()
