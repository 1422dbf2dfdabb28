import os
import sys
import time
import logging

from simplenn.config import load_config, save_config
from simplenn.dataloader import DataLoader, Dataset
from simplenn.history import History
from simplenn.utils import initialize_network, train_epochs, evaluate

logger = logging.getLogger("simplenn.train")


def configure_logging():
    level = getattr(logging, os.getenv('LOG_LEVEL', 'INFO').upper(), logging.INFO)
    logging.basicConfig(
        level=level,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )


def train(x, y, val_x, val_y, config):
    train_set = Dataset.from_arrays(x, y, config['BATCH_SIZE'])
    val_set = None
    if val_x is not None:
        val_set = Dataset.from_arrays(val_x, val_y, config['BATCH_SIZE'])

    model = initialize_network(
        x.shape[1], config['hidden1'], config['hidden2'], config['BATCH_SIZE'],
        init_range=config['init_range'], seed=config['seed'])
    logger.info("model: %s", model)

    history = History()

    def on_epoch_end(epoch, train_loss):
        ## save model weights with epoch number
        model.save_model_weights_pickle("model_weights_epoch_" + str(epoch) + ".pkl")

        if val_set is None:
            history.add(train_loss)
            return
        metrics = evaluate(model, val_set)
        history.add(train_loss, metrics['loss'], metrics['accuracy'], metrics['f1'])
        logger.info("Epoch: %d, Train Loss: %.6f, Val Loss: %.6f, Val Acc: %.2f, Val F1: %.2f",
                    epoch, train_loss, metrics['loss'], metrics['accuracy'], metrics['f1'])

    train_epochs(model, train_set, config['EPOCHS'], config['lr'], on_epoch_end, progress=True)

    history.save("history.pkl")
    history.plot()
    save_config(config, "config.json")
    return model


def main(argv):
    if len(argv) < 2:
        print("usage: python train.py DATASET.h5|DATASET.npz [CONFIG.json]")
        return 1

    config = load_config(argv[2] if len(argv) > 2 else None)

    start = time.time()
    dataloader = DataLoader(argv[1], config['x_name'], config['y_name'])
    if config['validation_split']:
        x, val_x, y, val_y = dataloader.load(config['validation_split'], config['seed'])
    else:
        x, y = dataloader.load()
        val_x = val_y = None
    logger.info("Time taken to load data: %.2fs", time.time() - start)

    train(x, y, val_x, val_y, config)
    return 0


if __name__ == '__main__':
    configure_logging()
    sys.exit(main(sys.argv))
