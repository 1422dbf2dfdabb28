import os
import pickle

import numpy as np
import matplotlib.pyplot as plt


class History:
    def __init__(self):
        self.history = {'loss': [], 'val_loss': [], 'val_acc': [], 'val_f1': []}

    def __len__(self):
        return len(self.history['loss'])

    def add(self, loss, val_loss=None, val_acc=None, val_f1=None):
        self.history['loss'].append(loss)
        for key, value in (('val_loss', val_loss), ('val_acc', val_acc), ('val_f1', val_f1)):
            if value is not None:
                self.history[key].append(value)

    def plot(self, out_dir="."):
        """Writes loss.png, plus acc.png, f1.png and all_metric_in_one.png when validation was recorded."""
        plt.rcParams["figure.figsize"] = (12, 6)
        plt.plot(self.history['loss'], label='train_loss')
        if self.history['val_loss']:
            plt.plot(self.history['val_loss'], label='val_loss')
        plt.legend()
        plt.savefig(os.path.join(out_dir, 'loss.png'))
        plt.clf()

        if not self.history['val_acc']:
            return

        plt.plot(self.history['val_acc'], label='val_acc')
        plt.legend()
        plt.savefig(os.path.join(out_dir, 'acc.png'))
        plt.clf()

        plt.plot(self.history['val_f1'], label='val_f1')
        plt.legend()
        plt.savefig(os.path.join(out_dir, 'f1.png'))
        plt.clf()

        """
        plot all in same fig
        """
        plt.plot(self.history['loss'], label='train_loss')
        plt.plot(self.history['val_loss'], label='val_loss')
        plt.plot(np.array(self.history['val_acc'])/100, label='val_acc')
        plt.plot(np.array(self.history['val_f1'])/100, label='val_f1')
        plt.legend()
        plt.savefig(os.path.join(out_dir, "all_metric_in_one.png"))
        plt.clf()

    def save(self, file_name):
        with open(file_name, "wb") as f:
            pickle.dump(self.history, f)

    @classmethod
    def load(cls, file_name):
        history = cls()
        with open(file_name, "rb") as f:
            history.history = pickle.load(f)
        return history
