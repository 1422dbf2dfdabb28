"""
XOR with the 2-4-4-1 network
"""

import logging

import numpy as np

from simplenn.dataloader import Dataset
from simplenn.utils import initialize_network, train_epochs

XOR_X = np.array([[0, 0], [0, 1], [1, 0], [1, 1]])
XOR_Y = np.array([0, 1, 1, 0])


if __name__ == '__main__':
    logging.basicConfig(level=logging.WARNING)

    dataset = Dataset.from_arrays(XOR_X, XOR_Y, batch_size=4)
    model = initialize_network(2, 4, 4, 4, init_range=1.0, seed=0)

    losses = train_epochs(model, dataset, 3000, 0.5)
    print("final mean loss: {:.4f}".format(losses[-1]))

    x, _ = dataset.batches[0]
    pred = model.predict(x).to_numpy().reshape(-1)
    for sample, p, label in zip(XOR_X, pred, XOR_Y):
        print("{} -> {:.3f} (label {})".format(sample, p, label))
