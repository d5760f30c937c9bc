# /propsort/bradley_terry.py

from __future__ import annotations
import logging
from typing import Sequence

import numpy as np
import choix  # choix==0.4.1

logger = logging.getLogger(__name__)

CONVERGENCE_TOL = 1e-3
REGULARIZED_ALPHA = 1e-1
REGULARIZED_MAX_ITER = 1000


def bradley_terry(w: Sequence[Sequence[float]], max_iter: int = 10) -> np.ndarray:
    """
    Bradley–Terry strengths from a pairwise win matrix (w[i][j] = how strongly i
    beat j; diagonal ignored). Higher means "place earlier".

    Minorization-maximization updates applied in place, in index order, so later
    items already see the new strengths of earlier ones within a pass. After
    each pass the vector is divided by its geometric mean; iteration stops once
    that mean moves by less than 1e-3.

    An item with neither wins nor losses against its peers gets 0/0 = NaN, and
    the NaN then spreads through the normalization. That is a valid result, not
    an error: callers treat NaN as "no preference".
    """
    wm = np.asarray(w, dtype=np.float64)
    n = wm.shape[0] if wm.ndim else 0
    p = np.ones(n, dtype=np.float64)
    if n == 0:
        return p

    last_norm = 0.0
    with np.errstate(divide="ignore", invalid="ignore"):
        for it in range(max_iter):
            log_sum = np.float64(0.0)
            for i in range(n):
                num = np.float64(0.0)
                den = np.float64(0.0)
                for j in range(n):
                    if i == j:
                        continue
                    s = p[i] + p[j]
                    num += wm[i, j] * p[j] / s
                    den += wm[j, i] / s
                p[i] = num / den
                log_sum += np.log(p[i])
            norm = np.exp(log_sum / n)
            p /= norm
            if abs(last_norm - norm) < CONVERGENCE_TOL:
                logger.debug("Bradley-Terry converged after %d passes.", it + 1)
                break
            last_norm = norm
    return p


def regularized_strengths(w: Sequence[Sequence[float]], alpha: float = REGULARIZED_ALPHA) -> np.ndarray:
    """
    Same model fitted by choix's I-LSR with an L2 penalty. Returns centered
    log-strengths, finite even when some items never lost (or never won).
    """
    wm = np.array(w, dtype=np.float64)
    n = wm.shape[0] if wm.ndim else 0
    if n < 2:
        return np.zeros(n, dtype=np.float64)
    np.fill_diagonal(wm, 0.0)
    params = choix.ilsr_pairwise_dense(wm, alpha=alpha, max_iter=REGULARIZED_MAX_ITER)
    params = np.asarray(params, dtype=np.float64)
    if not np.all(np.isfinite(params)):
        logger.warning("Regularized fit produced non-finite strengths: %s", params)
    return params
