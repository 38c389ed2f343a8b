import logging
import sys

def setup_logger(level: int = logging.INFO):
    """
    Configura o logger principal do solver.
    Por padrão mostra mensagens INFO ou mais importantes; use logging.DEBUG
    para ver cada iteração do Simplex.
    """
    log_format = "[%(asctime)s] [%(levelname)-8s] [%(module)-15s] - %(message)s"
    logger = logging.getLogger()
    logger.setLevel(level)

    if logger.hasHandlers():
        logger.handlers.clear()

    # O handler aceita tudo; quem filtra é o nível do logger principal
    handler = logging.StreamHandler(sys.stdout)
    handler.setLevel(logging.DEBUG)

    formatter = logging.Formatter(log_format, datefmt='%Y-%m-%d %H:%M:%S')
    handler.setFormatter(formatter)
    logger.addHandler(handler)

    logging.debug("Logger configurado com sucesso.")
