"""
Results writer - JSON record of a recovery run.

Layout:
    {
      "run_metadata":   {"timestamp": ..., "hostname": ..., "execution_time_seconds": ...},
      "analysis_parameters": {"prng_type": ..., "depth": ..., ...},
      "mode": "bruteforce" | "inference",
      "results": [{"seed": ..., "confidence": ...}, ...]   # bruteforce
      "predicted_outputs": [...]                          # inference
    }
"""

import json
import logging
import socket
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence, Union

from recovery.confidence_scorer import SeedResult
from recovery.engine_config import EngineConfig

logger = logging.getLogger(__name__)


def build_record(
    mode: str,
    config: EngineConfig,
    observed_count: int,
    results: Optional[Sequence[SeedResult]] = None,
    predicted_outputs: Optional[List[int]] = None,
    search_range: Optional[Dict[str, int]] = None,
    execution_time: Optional[float] = None,
) -> Dict[str, Any]:
    record: Dict[str, Any] = {
        'run_metadata': {
            'timestamp': datetime.now().isoformat(),
            'hostname': socket.gethostname(),
            'execution_time_seconds': round(execution_time, 3) if execution_time is not None else None,
        },
        'analysis_parameters': {
            'prng_type': config.prng,
            'depth': config.depth,
            'threads': config.threads,
            'min_confidence': config.min_confidence,
            'observed_outputs': observed_count,
        },
        'mode': mode,
    }
    if search_range is not None:
        record['analysis_parameters']['seed_range'] = search_range
    if results is not None:
        record['results'] = [r.to_dict() for r in results]
    if predicted_outputs is not None:
        record['predicted_outputs'] = list(predicted_outputs)
    return record


def save_results(path: Union[str, Path], record: Dict[str, Any]) -> Path:
    path = Path(path)
    if path.parent and not path.parent.exists():
        path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, 'w') as f:
        json.dump(record, f, indent=2)
    logger.info("Results written to %s", path)
    return path
