#!/usr/bin/env python
"""
Regenerate golden files from the current implementation.

Usage:
    python scripts/regenerate_goldens.py --verify  # Check drift without regenerating
    python scripts/regenerate_goldens.py           # Regenerate all golden files
    python scripts/regenerate_goldens.py --short   # Regenerate the 30-year variant only
    python scripts/regenerate_goldens.py --full    # Regenerate the full example only

Golden files snapshot the example policy projection:
- Technical benefit reserve in Active
- Free-policy factor
- Standard Active and rho-modified free-policy Active rows at time index 20
- Cumulative original and bonus market cash flows
"""

import argparse
import json
from datetime import datetime
from pathlib import Path

import numpy as np

# Add project root to path
import sys
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from semi_markov_projection.config.tolerances import GOLDEN_RELATIVE_TOLERANCE
from semi_markov_projection.engines.grid import DurationTimeGrid
from semi_markov_projection.loaders.bases import market_basis_intensities, technical_basis
from semi_markov_projection.loaders.portfolio import create_example_policy
from semi_markov_projection.models.states import ORIGINAL_POSITIVE, State
from semi_markov_projection.projection.projection_input import build_projection_input


GOLDEN_DIR = Path(__file__).parent.parent / "tests" / "golden" / "outputs"

SNAPSHOT_ROW = 20

VARIANTS = {
    "short": {"policy_id": "short", "expiry_age": 30.0, "filename": "example_policy_short.json"},
    "full": {"policy_id": "policy1", "expiry_age": 90.0, "filename": "example_policy.json"},
}


def regenerate_example(policy_id: str, expiry_age: float) -> dict:
    """Project the example policy and collect the snapshot arrays."""
    today = datetime.now().strftime("%Y-%m-%d")
    step_size = 1.0 / 12.0

    policy = create_example_policy(policy_id=policy_id, expiry_age=expiry_age)
    technical_model, interest = technical_basis()
    result = build_projection_input(
        market_basis_intensities(),
        technical_model,
        {policy_id: policy},
        interest,
        DurationTimeGrid(step_size),
    )

    reserves = result.technical_reserves[policy_id]
    return {
        "_meta": {
            "source": "Example policy projection (market and technical basis)",
            "generated": today,
            "tolerance_tier": "golden_relative",
            "notes": "Snapshot of the current implementation",
        },
        "example_policy": {
            "description": f"Male aged 30, active for 5 years, horizon {expiry_age} years",
            "parameters": {
                "policy_id": policy_id,
                "age": policy.age,
                "expiry_age": expiry_age,
                "initial_duration": policy.initial_duration,
                "step_size": step_size,
                "interest": interest,
            },
            "expected": {
                "active_benefit_reserve": reserves[ORIGINAL_POSITIVE][State.ACTIVE].tolist(),
                "free_policy_factor": result.free_policy_factor[policy_id].tolist(),
                "active_row": result.probabilities[policy_id][State.ACTIVE][SNAPSHOT_ROW].tolist(),
                "rho_free_policy_active_row": result.rho_probabilities[policy_id][
                    State.FREE_POLICY_ACTIVE
                ][SNAPSHOT_ROW].tolist(),
                "original_cash_flows": result.market_original_cash_flows[policy_id].tolist(),
                "bonus_cash_flows": result.market_bonus_cash_flows[policy_id].tolist(),
            },
        },
    }


def verify_golden(filepath: Path, current_data: dict, tolerance: float) -> list[str]:
    """Verify golden file matches current implementation."""
    if not filepath.exists():
        return [f"Golden file does not exist: {filepath}"]

    with open(filepath) as f:
        stored_data = json.load(f)

    errors = []

    for key, current_example in current_data.items():
        if key.startswith("_"):
            continue

        if key not in stored_data:
            errors.append(f"Missing example: {key}")
            continue

        current_expected = current_example.get("expected", {})
        stored_expected = stored_data[key].get("expected", {})

        for value_key, current_value in current_expected.items():
            if value_key not in stored_expected:
                continue
            current = np.asarray(current_value)
            stored = np.asarray(stored_expected[value_key])
            if current.shape != stored.shape:
                errors.append(f"{key}.{value_key}: shape {current.shape} != stored {stored.shape}")
                continue
            if not np.allclose(current, stored, rtol=tolerance, atol=0.0):
                diff = np.max(np.abs(current - stored))
                errors.append(f"{key}.{value_key}: max diff={diff}")

    return errors


def main():
    parser = argparse.ArgumentParser(description="Regenerate golden files")
    parser.add_argument("--verify", action="store_true", help="Verify without regenerating")
    parser.add_argument("--short", action="store_true", help="Regenerate the 30-year variant only")
    parser.add_argument("--full", action="store_true", help="Regenerate the full example only")
    args = parser.parse_args()

    # Default to all if no specific flag
    selected = [name for name in VARIANTS if getattr(args, name)] or list(VARIANTS)

    GOLDEN_DIR.mkdir(parents=True, exist_ok=True)
    all_errors = []

    for name in selected:
        variant = VARIANTS[name]
        data = regenerate_example(variant["policy_id"], variant["expiry_age"])
        path = GOLDEN_DIR / variant["filename"]

        if args.verify:
            errors = verify_golden(path, data, GOLDEN_RELATIVE_TOLERANCE)
            if errors:
                print(f"{name} example drift detected:")
                for e in errors:
                    print(f"  - {e}")
                all_errors.extend(errors)
            else:
                print(f"{name} example: OK")
        else:
            with open(path, "w") as f:
                json.dump(data, f, indent=2)
            print(f"Regenerated: {path}")

    if args.verify and all_errors:
        print(f"\n{len(all_errors)} drift(s) detected. Run without --verify to regenerate.")
        sys.exit(1)
    elif args.verify:
        print("\nAll golden files verified successfully.")


if __name__ == "__main__":
    main()
