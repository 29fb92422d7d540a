import os
import logging
import pytz
from datetime import datetime


class TimezoneFormatter(logging.Formatter):
    def __init__(self, fmt=None, datefmt=None, tz_name='Asia/Kolkata'):
        super().__init__(fmt=fmt, datefmt=datefmt)
        self.timezone = pytz.timezone(tz_name)

    def formatTime(self, record, datefmt=None):
        # Render the timestamp in the configured zone instead of server local time
        record_time = datetime.fromtimestamp(record.created, self.timezone)
        return record_time.strftime(datefmt) if datefmt else record_time.isoformat()


def setup_logging(tz_name=None):
    logger = logging.getLogger()
    if not logger.handlers:
        formatter = TimezoneFormatter(
            fmt='%(asctime)s - %(levelname)s - %(message)s',
            datefmt='%Y-%m-%d %H:%M:%S',
            tz_name=tz_name or os.getenv('LOG_TIMEZONE', 'Asia/Kolkata')
        )

        handler = logging.StreamHandler()
        handler.setFormatter(formatter)

        logger.setLevel(logging.INFO)
        logger.addHandler(handler)

    return logger
