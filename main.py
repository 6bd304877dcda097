import argparse
import logging
import sys
from pathlib import Path

# Add project root to path for robust execution
project_root = Path(__file__).parent
if str(project_root) not in sys.path:
    sys.path.insert(0, str(project_root))

from seqlabel.alphabet import LabelAlphabet
from seqlabel.config import load_config
from seqlabel.io_utils import build_encoder, load_predictions, save_labeled
from seqlabel.labeler import TokensLabeler, annotate, label_sentences


def main():
    """
    Main command-line interface for the sequence labeler.

    This script turns stored encoder predictions into schema-valid labels.
    It performs the following steps:
    1.  Loads the configuration file (`config.yaml`) with the tag schema, the
        beam search bounds and, optionally, the label alphabet.
    2.  Loads the prediction file holding one score matrix per sentence.
    3.  Builds the label alphabet and one labeler per worker.
    4.  Decodes every sentence (beam search with greedy fallback).
    5.  Writes the labels and the entity segments to the output JSON file.
    """
    parser = argparse.ArgumentParser(
        description="Decode per-token label scores into valid label sequences and entity segments.",
        formatter_class=argparse.ArgumentDefaultsHelpFormatter
    )
    parser.add_argument(
        "--input",
        required=True,
        help="Path to the prediction JSON file (tokens and per-token scores)."
    )
    parser.add_argument(
        "--output",
        required=True,
        help="Path to write the labeled JSON file."
    )
    parser.add_argument(
        "--config",
        default="config.yaml",
        help="Path to the configuration YAML file."
    )
    parser.add_argument(
        "--workers",
        type=int,
        default=None,
        help="Number of parallel labelers. Overrides 'parallelization' from the config."
    )
    parser.add_argument(
        "--print",
        dest="print_labels",
        action="store_true",
        help="Also print every labeled sentence, one token per line."
    )
    parser.add_argument(
        "--log-level",
        default="WARNING",
        type=str.upper,
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging level of the decoding library."
    )
    args = parser.parse_args()

    logging.basicConfig(level=args.log_level, format="%(asctime)s [%(levelname)s] %(name)s: %(message)s")

    try:
        # 1. Load configuration
        print(f"Loading configuration from {args.config}...")
        cfg = load_config(args.config)
        if args.workers is not None:
            cfg.parallelization = max(1, args.workers)

        # 2. Load input data
        print(f"Loading predictions from {args.input}...")
        predictions = load_predictions(args.input)

        # 3. Build the alphabet and the labelers
        annotations = predictions.labels or list(cfg.labels)
        if not annotations:
            raise ValueError("No label alphabet found in the prediction file or the configuration.")
        alphabet = LabelAlphabet.from_annotations(annotations, cfg.get_schema())
        encoder, sentences = build_encoder(predictions)
        labelers = [TokensLabeler.from_config(encoder, cfg, alphabet) for _ in range(cfg.parallelization)]

        # 4. Decode
        print(f"Labeling {len(sentences)} sentences...")
        labels = label_sentences(sentences, labelers)

        if args.print_labels:
            for tokens, sentence_labels in zip(sentences, labels):
                print("\n".join(str(t) for t in annotate(tokens, sentence_labels)) + "\n")

        # 5. Write to output file
        output_path = Path(args.output)
        output_path.parent.mkdir(parents=True, exist_ok=True)
        save_labeled(str(output_path), sentences, labels, alphabet.schema)

        print(f"\nSuccessfully wrote labeled output to {args.output}")

    except (FileNotFoundError, ValueError, TypeError, KeyError) as e:
        print(f"\nError: {e}", file=sys.stderr)
        sys.exit(1)

if __name__ == "__main__":
    main()
