#!/usr/bin/env python3
"""
Command-line driver for Interaction Scope.

Reads the perception streams of one recorded two-person session from JSON
files, runs the session analysis pipeline and writes the result as JSON:
1. Speech transcript (word-level speaker tags and timestamps)
2. Person tracking (per-frame bounding boxes), optional
3. Speaker profiles and voice summary, optional

Usage:
    python main.py --transcript session_transcript.json --tracks session_tracks.json \\
        --profiles session_speakers.json --config configs/thresholds.yaml --output result.json

Engineering approach:
- The analysis packages perform no I/O; this script owns files and logging
- Configurable thresholds and weights (YAML)
- Non-zero exit status on any failure, with full traceback in the log
"""

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import Any, Optional, Tuple

from session_analysis import analyze_session
from utils.config_loader import load_config

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
    handlers=[
        logging.FileHandler('interaction_scope.log'),
        logging.StreamHandler(sys.stdout)
    ]
)

logger = logging.getLogger(__name__)

TRACKING_KEYS = ('personDetectionAnnotations', 'person_detection_annotations', 'annotations', 'tracks')


def read_json(path: Path) -> Any:
    with open(path, 'r', encoding='utf-8') as f:
        return json.load(f)


def unpack_transcript(data: Any) -> Any:
    """Speech-to-text responses wrap fragments in 'results'."""
    if isinstance(data, dict):
        return data.get('results', data.get('fragments', []))
    return data


def unpack_tracking(data: Any) -> Any:
    if isinstance(data, dict):
        for key in TRACKING_KEYS:
            if key in data:
                # A top-level 'tracks' key means the file holds a single annotation
                return [data] if key == 'tracks' else data[key]
        return []
    return data


def unpack_profiles(data: Any) -> Tuple[Any, Optional[dict]]:
    """
    Split a voice-analysis file into speaker profiles and voice summary.

    Accepts a list of profiles, or a mapping with 'speakers' and an optional
    'emotionAnalysis' block holding emotionalSynchrony.
    """
    if isinstance(data, dict):
        summary = data.get('emotionAnalysis') or data.get('voice_summary')
        if summary is None and 'emotionalSynchrony' in data:
            summary = {'emotionalSynchrony': data['emotionalSynchrony']}
        return data.get('speakers', []), summary
    return data, None


def run(args: argparse.Namespace) -> dict:
    """Load inputs, run the analysis and return the JSON-ready result."""
    config = load_config(args.config)

    transcript = unpack_transcript(read_json(Path(args.transcript)))
    tracking = unpack_tracking(read_json(Path(args.tracks))) if args.tracks else None
    profiles, voice_summary = (
        unpack_profiles(read_json(Path(args.profiles))) if args.profiles else (None, None)
    )

    analysis = analyze_session(
        transcript,
        tracking_data=tracking,
        speaker_profiles=profiles,
        voice_summary=voice_summary,
        config=config
    )

    return analysis.to_dict()


def main():
    """Main entry point."""
    parser = argparse.ArgumentParser(
        description='Interaction Scope - Two-person interaction quality analysis',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Speech only
  python main.py --transcript transcript.json

  # Speech, tracking and speaker profiles, result written to a file
  python main.py --transcript transcript.json --tracks tracks.json \\
      --profiles speakers.json --output result.json
        """
    )

    parser.add_argument(
        '--transcript',
        type=str,
        required=True,
        help='Path to speech transcript JSON (fragments with word-level speaker tags)'
    )

    parser.add_argument(
        '--tracks',
        type=str,
        default=None,
        help='Path to person tracking JSON (optional)'
    )

    parser.add_argument(
        '--profiles',
        type=str,
        default=None,
        help='Path to speaker profiles / voice summary JSON (optional)'
    )

    parser.add_argument(
        '--config',
        type=str,
        default='configs/thresholds.yaml',
        help='Path to configuration YAML file (default: configs/thresholds.yaml)'
    )

    parser.add_argument(
        '--output',
        type=str,
        default=None,
        help='Path of the result JSON file (default: print to stdout)'
    )

    args = parser.parse_args()

    # Validate input paths
    for label, path in (('Transcript', args.transcript), ('Tracks', args.tracks),
                        ('Profiles', args.profiles), ('Config', args.config)):
        if path and not Path(path).exists():
            logger.error(f"{label} file not found: {path}")
            sys.exit(1)

    try:
        result = run(args)

        if args.output:
            output_path = Path(args.output)
            output_path.parent.mkdir(parents=True, exist_ok=True)
            with open(output_path, 'w', encoding='utf-8') as f:
                json.dump(result, f, indent=2, ensure_ascii=False)
            logger.info(f"Result written to {output_path}")
        else:
            json.dump(result, sys.stdout, indent=2, ensure_ascii=False)
            sys.stdout.write('\n')

        composite = result['composite']
        logger.info(
            f"SUCCESS: overall {composite['overall']:.3f} (grade {composite['grade']}), "
            f"data quality {composite['data_quality']['quality_flag']}"
        )
        sys.exit(0)

    except KeyboardInterrupt:
        logger.warning("Analysis interrupted by user")
        sys.exit(1)

    except Exception as e:
        logger.error(f"ERROR: Analysis failed with {type(e).__name__}: {e}")
        logger.exception("Full traceback:")
        sys.exit(1)


if __name__ == '__main__':
    main()
