#!/usr/bin/env python3
"""
QLD Posterior Sampling Pipeline

Reads a dilution assay from JSON, samples the posterior of θ with several
independent Metropolis-Hastings chains, prints a summary and saves the
samples.

Input JSON:
    {"positive_wells": [...], "total_wells": [...], "dilution_fraction": [...]}

Usage:
    python -m qld.run_analysis --data assay.json [--chains 4] [--output results/]
"""

import argparse
import json
import logging
import sys
from datetime import datetime
from pathlib import Path
from typing import List, Optional

import numpy as np

from . import __version__
from .analysis.summary import summarize_samples, format_summary
from .data import DilutionDataset
from .sampling.multichain import MultiChainRunner, MultiChainResult
from .utils.config import SamplerConfig, DEFAULT_PROPOSAL_SD, DEFAULT_PRIOR_RATE
from .utils.numerics import QLDError

logger = logging.getLogger(__name__)


def load_dataset(path: str) -> DilutionDataset:
    """Load a dilution dataset from a JSON file."""
    with open(path) as f:
        data = json.load(f)
    return DilutionDataset.from_dict(data)


def build_results(
    dataset: DilutionDataset,
    config: SamplerConfig,
    result: MultiChainResult,
    iupm_scale: float,
) -> dict:
    """Collect everything written to the results file."""
    return {
        'data': dataset.to_dict(),
        'config': config.to_dict(),
        'iupm_scale': iupm_scale,
        'summary': result.summary(scale=iupm_scale),
        'samples': {
            'theta': result.theta,
            'chain_id': result.chain_id,
            'accepted': result.accepted,
        },
    }


def save_results(results: dict, output_dir: str, prefix: str = "qld") -> Path:
    """Save results to a timestamped JSON file."""
    output_path = Path(output_dir)
    output_path.mkdir(parents=True, exist_ok=True)

    # Convert numpy types to Python types for JSON serialization
    def convert(obj):
        if isinstance(obj, np.ndarray):
            return obj.tolist()
        if isinstance(obj, np.integer):
            return int(obj)
        if isinstance(obj, np.floating):
            return float(obj)
        if isinstance(obj, dict):
            return {str(k): convert(v) for k, v in obj.items()}
        if isinstance(obj, list):
            return [convert(v) for v in obj]
        return obj

    results = convert(results)
    results['metadata'] = {
        'timestamp': datetime.now().isoformat(),
        'version': __version__,
    }

    filename = output_path / f"{prefix}_results_{datetime.now().strftime('%Y%m%d_%H%M%S')}.json"
    with open(filename, 'w') as f:
        json.dump(results, f, indent=2)

    logger.info("Results saved to: %s", filename)
    return filename


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description='Sample the posterior of a quantal limited-dilution assay'
    )
    parser.add_argument('--data', '-d', required=True,
                        help='JSON file with positive_wells, total_wells, dilution_fraction')
    parser.add_argument('--burnin', type=int, default=500,
                        help='Burn-in iterations per chain')
    parser.add_argument('--samples', type=int, default=2000,
                        help='Recorded iterations per chain')
    parser.add_argument('--chains', type=int, default=4,
                        help='Number of independent chains')
    parser.add_argument('--workers', type=int, default=1,
                        help='Worker processes (1 runs chains sequentially)')
    parser.add_argument('--seed', type=int, default=None,
                        help='Master random seed')
    parser.add_argument('--proposal-sd', type=float, default=DEFAULT_PROPOSAL_SD,
                        help='Random-walk scale in log(theta)')
    parser.add_argument('--prior-rate', type=float, default=DEFAULT_PRIOR_RATE,
                        help='Rate of the exponential prior on theta')
    parser.add_argument('--iupm-scale', type=float, default=1.0,
                        help='Factor converting theta to IUPM in the summary')
    parser.add_argument('--output', '-o', default=None,
                        help='Output directory for the results file (not saved if omitted)')
    parser.add_argument('--log-level', default='INFO',
                        choices=['DEBUG', 'INFO', 'WARNING', 'ERROR'],
                        help='Logging verbosity')
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point."""
    args = build_parser().parse_args(argv)
    logging.basicConfig(level=getattr(logging, args.log_level))

    config = SamplerConfig(
        n_burnin=args.burnin,
        n_samples=args.samples,
        n_chains=args.chains,
        proposal_sd=args.proposal_sd,
        prior_rate=args.prior_rate,
        seed=args.seed,
        n_workers=args.workers,
    )

    try:
        dataset = load_dataset(args.data)
        result = MultiChainRunner(dataset, config).run()
    except QLDError as e:
        logger.error("%s", e)
        return 2
    except (OSError, json.JSONDecodeError) as e:
        logger.error("Could not read data file %s: %s", args.data, e)
        return 1

    summary = summarize_samples(result.theta, scale=args.iupm_scale)
    print(format_summary(
        summary,
        acceptance_rate=result.acceptance_rate,
        per_chain_acceptance=result.per_chain_acceptance(),
        label="IUPM" if args.iupm_scale != 1.0 else "theta",
    ))

    if args.output:
        save_results(build_results(dataset, config, result, args.iupm_scale), args.output)

    return 0


if __name__ == '__main__':
    sys.exit(main())
