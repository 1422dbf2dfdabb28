"""
Numerical gradient check for the hand-written backward pass.

Every element of every Dense weight and bias is nudged by +/- epsilon and the
central difference of the loss is compared with the backprop gradient. Run it
on a float64 network; float32 rounding swamps a small epsilon.
"""

import logging

import numpy as np

logger = logging.getLogger(__name__)


def gradient_check(network, x, y, epsilon=1e-5, floor=1e-8):
    """
    network: MLP
    x, y: one batch (features, labels)
    returns {'max_rel_error', 'mean_rel_error', 'records'} where each record
    holds the parameter name, (row, col), numerical and analytic gradients
    """
    network.zero_grad()
    network.compute_gradients(x, y)

    records = []
    for n, layer in enumerate(network.dense_layers, start=1):
        for name, param in (("W", layer.W), ("b", layer.b)):
            values = param["val"].data
            cols = param["val"].cols
            analytic = param["grad"].data.copy()

            for idx in range(values.size):
                old = values[idx]

                values[idx] = old + epsilon
                loss_plus = network.evaluate_loss(x, y)
                values[idx] = old - epsilon
                loss_minus = network.evaluate_loss(x, y)
                values[idx] = old

                numerical = (loss_plus - loss_minus) / (2.0 * epsilon)
                grad = float(analytic[idx])
                rel = abs(numerical - grad) / max(floor, abs(numerical) + abs(grad))
                records.append({
                    "param": name + str(n),
                    "index": divmod(idx, cols),
                    "numerical": numerical,
                    "analytic": grad,
                    "rel_error": rel,
                })

    network.zero_grad()

    rel_errors = [r["rel_error"] for r in records]
    result = {
        "max_rel_error": float(np.max(rel_errors)),
        "mean_rel_error": float(np.mean(rel_errors)),
        "records": records,
    }
    logger.debug("gradient check over %d parameters: max rel error %.3e",
                 len(records), result["max_rel_error"])
    return result
