from __future__ import annotations

import copy
from typing import Any, Dict, Optional


EXPERIMENT_NAMES = ("baseline", "pyramid", "brief", "patch", "kernel")


DEFAULT_CONFIG: Dict[str, Any] = {
    "base_path": "./mnist_data",
    "cache_dir": None,
    "k": 7,
    "shrink": None,            # keep 1 out of every `shrink` images when set, e.g. 50
    "max_workers": 1,
    "random_state": None,
    "permutation_file": None,  # also rerun every experiment on permuted pixels when set
    "experiments": ["baseline"],
    "brief": {"pairs": 8192},
    "patch": {"patch_size": 3},
    "kernel": {
        "kernel_size": 3,
        "levels": 1,
        "num_kernels": 8,
        "stride": 2,
    },
    "kmeans": {"max_iterations": 300, "n_init": 10},
}


def build_config(overrides: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
    """
    Merge overrides onto a copy of DEFAULT_CONFIG; nested dicts merge key by key.

    Raises:
        ValueError: On unknown keys or unknown experiment names
    """
    cfg = copy.deepcopy(DEFAULT_CONFIG)
    for key, value in (overrides or {}).items():
        if key not in cfg:
            raise ValueError(f"Unknown config key: {key!r}")
        if isinstance(cfg[key], dict) and isinstance(value, dict):
            unknown = set(value) - set(cfg[key])
            if unknown:
                raise ValueError(f"Unknown keys for {key!r}: {sorted(unknown)}")
            cfg[key].update(value)
        else:
            cfg[key] = value

    unknown_experiments = [name for name in cfg["experiments"] if name not in EXPERIMENT_NAMES]
    if unknown_experiments:
        raise ValueError(f"Unknown experiments: {unknown_experiments}. Use any of {list(EXPERIMENT_NAMES)}")
    if int(cfg["k"]) < 1:
        raise ValueError(f"k must be at least 1, got {cfg['k']}")
    return cfg
