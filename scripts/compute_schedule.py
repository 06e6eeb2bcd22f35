import logging

import hydra
from pathlib import Path
from hydra.core.config_store import ConfigStore
from hydra.core.hydra_config import HydraConfig
from omegaconf import DictConfig, OmegaConf

from noiseschedule.configs import ProjectConfig
from noiseschedule.analysis.runner import run_analysis

cs = ConfigStore.instance()
cs.store(name="base_config", node=ProjectConfig)


def get_logger():
    # Hydra sets up the handlers and format
    logger = logging.getLogger(__name__)
    return logger


@hydra.main(config_path="../configs", config_name="config", version_base="1.3")
def main(config: DictConfig):
    logger = get_logger()

    logger.info("==== CONFIG BEGIN ====")
    for line in OmegaConf.to_yaml(config).splitlines():
        logger.info(line)
    logger.info("==== CONFIG END ====")

    hydra_out_dir = Path(HydraConfig.get().runtime.output_dir)
    config: ProjectConfig = OmegaConf.to_object(config)

    run_analysis(config=config, output_dir=hydra_out_dir, logger=logger)


if __name__ == "__main__":
    main()
