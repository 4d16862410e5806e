"""Central logging system - one formatter and one set of handlers for the whole process"""

import logging
import sys
from datetime import datetime
from pathlib import Path

LOGGER_NAMESPACE = "gateway"


class GatewayLogFormatter(logging.Formatter):
    """
    Log formatter
    - aligned time, level, component and message columns
    - level colors when writing to a terminal
    """

    # ANSI color codes
    color_codes = {
        "DEBUG": "\033[36m",  # cyan
        "INFO": "\033[32m",  # green
        "WARNING": "\033[33m",  # yellow
        "ERROR": "\033[31m",  # red
        "CRITICAL": "\033[35m",  # magenta
        "RESET": "\033[0m",
    }

    def __init__(self, use_colors: bool = False):
        super().__init__()
        self.use_colors = use_colors

    def format(self, record):
        # YYYY-MM-DD HH:MM:SS
        time_string = datetime.fromtimestamp(record.created).strftime(
            "%Y-%m-%d %H:%M:%S"
        )

        # gateway.MongoDB -> MongoDB
        component_name = record.name
        if component_name.startswith(f"{LOGGER_NAMESPACE}."):
            component_name = component_name[len(LOGGER_NAMESPACE) + 1 :]

        if self.use_colors:
            level_color = self.color_codes.get(record.levelname, "")
            reset_color = self.color_codes["RESET"]
        else:
            level_color = reset_color = ""

        formatted_message = f"{time_string} | {level_color}{record.levelname:8}{reset_color} | {component_name:20} | {record.getMessage()}"

        if record.exc_info:
            formatted_message += f"\n{self.formatException(record.exc_info)}"

        return formatted_message


class CentralLoggerManager:
    """
    Process-wide logging setup
    - console and (optionally) file output
    - level filtering
    - one log file per day
    """

    def __init__(self):
        self.logger_instance = None
        self.log_file_path = None
        self.initialized = False

    def initialize_logger_system(
        self, log_level: str = "INFO", log_to_file: bool = False
    ):
        """
        Configure the root logger once

        Args:
            log_level: minimum level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
            log_to_file: also write to logs/gateway_YYYYMMDD.log
        """
        if self.initialized:
            return self.logger_instance

        root_logger = logging.getLogger()
        root_logger.setLevel(getattr(logging, log_level.upper()))

        # Drop handlers installed by anyone before us
        root_logger.handlers.clear()

        console_handler = logging.StreamHandler(sys.stdout)
        console_handler.setFormatter(
            GatewayLogFormatter(use_colors=sys.stdout.isatty())
        )
        console_handler.setLevel(getattr(logging, log_level.upper()))
        root_logger.addHandler(console_handler)

        if log_to_file:
            self._setup_file_handler(root_logger, GatewayLogFormatter())

        self.logger_instance = root_logger
        self.initialized = True

        self.logger_instance.info("🚀 Logging system initialized")
        self.logger_instance.info(f"📊 Log level: {log_level}")
        if log_to_file:
            self.logger_instance.info(f"📁 Log file: {self.log_file_path}")

        return self.logger_instance

    def _setup_file_handler(self, root_logger, formatter):
        log_directory = Path("logs")
        log_directory.mkdir(exist_ok=True)

        today_date = datetime.now().strftime("%Y%m%d")
        self.log_file_path = log_directory / f"{LOGGER_NAMESPACE}_{today_date}.log"

        file_handler = logging.FileHandler(self.log_file_path, encoding="utf-8")
        file_handler.setFormatter(formatter)
        file_handler.setLevel(logging.DEBUG)
        root_logger.addHandler(file_handler)

    def create_module_logger(self, module_name: str) -> logging.Logger:
        """
        Logger for one component, placed under the gateway namespace

        Args:
            module_name: component name (e.g. 'MongoDB', 'graphql.guards')
        """
        return logging.getLogger(f"{LOGGER_NAMESPACE}.{module_name}")

    def performance_logger(self, task_name: str):
        """
        Context manager measuring a block's wall time

        Usage:
            with logger_manager.performance_logger("schema_build"):
                schema = build_schema(modules)
        """
        return PerformanceMeasurementContext(
            task_name, self.create_module_logger("performance")
        )


class PerformanceMeasurementContext:
    def __init__(self, task_name: str, logger: logging.Logger):
        self.task_name = task_name
        self.logger = logger
        self.start_time = None

    def __enter__(self):
        self.start_time = datetime.now()
        self.logger.debug(f"⏱️  {self.task_name} started")
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        if self.start_time:
            execution_time = (datetime.now() - self.start_time).total_seconds()

            if exc_type:
                self.logger.error(
                    f"❌ {self.task_name} failed ({execution_time:.3f}s)"
                )
            else:
                self.logger.info(
                    f"✅ {self.task_name} done ({execution_time:.3f}s)"
                )


# Global logger manager instance
logger_manager = CentralLoggerManager()


def get_logger(module_name: str) -> logging.Logger:
    """
    Usage:
        from core.logger import get_logger
        logger = get_logger("MongoDB")
        logger.info("MongoDB open")
    """
    return logger_manager.create_module_logger(module_name)


def initialize_logging_system(log_level: str = "INFO", log_to_file: bool = False):
    """Called once at application startup"""
    return logger_manager.initialize_logger_system(log_level, log_to_file)
