"""Command line entry point: load a tokenizer and model, then generate text."""

import argparse
import logging
import sys
from collections.abc import Sequence

from .config import DEFAULT_EOS_TOKEN_ID, GenerationConfig
from .errors import BpeGenError
from .generation import ForwardPass, TextGenerator
from .pattern import TokenPattern, list_patterns
from .tokenizer import Tokenizer

log = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="bpegen",
        description="Generate text with a byte-level BPE tokenizer and an ONNX language model.",
    )
    parser.add_argument(
        "--model",
        default=None,
        help="Path to an ONNX decoder model. Without it only the tokenizer is exercised.",
    )
    parser.add_argument(
        "--vocab",
        default="models/gpt2/vocab.json",
        help="Path to vocab.json (default: models/gpt2/vocab.json).",
    )
    parser.add_argument(
        "--merges",
        default="models/gpt2/merges.txt",
        help="Path to merges.txt (default: models/gpt2/merges.txt).",
    )
    parser.add_argument(
        "--pattern",
        default="simple",
        choices=[name.lower() for name in list_patterns()],
        help="Pretokenizer split pattern (default: simple).",
    )
    parser.add_argument("--prompt", default=None, help="Prompt text (default: interactive mode).")
    parser.add_argument(
        "--max-length", type=int, default=50, help="Maximum tokens to generate (default: 50)."
    )
    parser.add_argument(
        "--temperature",
        type=float,
        default=1.0,
        help="Sampling temperature (default: 1.0, use 0 for greedy).",
    )
    parser.add_argument(
        "--top-k", type=int, default=50, help="Top-k sampling (default: 50, use 0 to disable)."
    )
    parser.add_argument(
        "--top-p",
        type=float,
        default=0.9,
        help="Nucleus sampling (default: 0.9, use 1.0 to disable).",
    )
    parser.add_argument(
        "--eos-token-id",
        type=int,
        default=DEFAULT_EOS_TOKEN_ID,
        help=f"End of sequence token id (default: {DEFAULT_EOS_TOKEN_ID}, use -1 to disable).",
    )
    parser.add_argument(
        "--vocab-size",
        type=int,
        default=None,
        help="Model vocabulary size (default: size of the loaded vocabulary).",
    )
    parser.add_argument("--seed", type=int, default=None, help="Random seed for sampling.")
    parser.add_argument(
        "--log-level",
        default="WARNING",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging level (default: WARNING).",
    )
    return parser


def _run_prompt(
    prompt: str,
    tokenizer: Tokenizer,
    generator: TextGenerator | None,
    config: GenerationConfig,
) -> None:
    """Generate for one prompt, echoing fragments as they arrive."""
    if generator is None:
        ids = tokenizer.encode(prompt)
        print(f"Token ids: {ids}")
        print(f"Decoded: {tokenizer.decode(ids)}")
        return

    print("\nGenerated text:")
    print("-------------------")
    print(prompt, end="", flush=True)
    generator.generate(
        prompt,
        config,
        on_token=lambda fragment: print(fragment, end="", flush=True),
    )
    print("\n-------------------")


def main(argv: Sequence[str] | None = None) -> int:
    args = build_parser().parse_args(argv)

    logging.basicConfig(
        level=getattr(logging, args.log_level),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        datefmt="%H:%M:%S",
    )

    try:
        config = GenerationConfig(
            max_length=args.max_length,
            temperature=args.temperature,
            top_k=args.top_k,
            top_p=args.top_p,
            eos_token_id=None if args.eos_token_id < 0 else args.eos_token_id,
        )
    except BpeGenError as e:
        print(f"Invalid generation settings: {e}", file=sys.stderr)
        return 2

    print("Loading tokenizer...")
    tokenizer = Tokenizer(TokenPattern.get(args.pattern))
    if not tokenizer.load(args.vocab, args.merges):
        print("Failed to load tokenizer", file=sys.stderr)
        return 1

    generator: TextGenerator | None = None
    if args.model is not None:
        from .engine import OnnxForwardPass

        try:
            engine: ForwardPass = OnnxForwardPass(
                args.model, vocab_size=args.vocab_size or tokenizer.vocab_size()
            )
        except BpeGenError as e:
            print(f"Failed to load model: {e}", file=sys.stderr)
            return 1
        generator = TextGenerator(engine, tokenizer, seed=args.seed)

    try:
        if args.prompt is not None:
            print(f"Prompt: {args.prompt}")
            _run_prompt(args.prompt, tokenizer, generator, config)
            return 0

        print("=== Interactive Mode ===")
        print("Enter prompts (Ctrl+D to exit)")
        while True:
            try:
                prompt = input("Prompt: ")
            except EOFError:
                break
            if not prompt:
                continue
            _run_prompt(prompt, tokenizer, generator, config)
    except BpeGenError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
    except KeyboardInterrupt:
        print()
    return 0


if __name__ == "__main__":
    sys.exit(main())
