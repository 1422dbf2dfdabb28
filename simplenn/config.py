import json

from simplenn.errors import ConfigError

DEFAULT_CONFIG = {
    'hidden1': 512,
    'hidden2': 128,
    'BATCH_SIZE': 209,
    'EPOCHS': 10,
    'lr': 0.01,
    'init_range': 0.01,
    'seed': 120,
    'validation_split': 0.0,
    'x_name': 'train_set_x',
    'y_name': 'train_set_y',
}


def load_config(file_name=None):
    """DEFAULT_CONFIG updated with the keys of a JSON file."""
    config = dict(DEFAULT_CONFIG)
    if file_name is None:
        return config

    with open(file_name, "r") as f:
        try:
            overrides = json.load(f)
        except json.JSONDecodeError as e:
            raise ConfigError("{}: invalid JSON".format(file_name)) from e

    if not isinstance(overrides, dict):
        raise ConfigError("{}: expected a JSON object".format(file_name))
    unknown = sorted(set(overrides) - set(DEFAULT_CONFIG))
    if unknown:
        raise ConfigError("{}: unknown keys {}".format(file_name, unknown))

    config.update(overrides)
    return config


def save_config(config, file_name):
    with open(file_name, "w") as f:
        json.dump(config, f, indent=2)
