import os
import sys

from mpesa_relay import create_app
from mpesa_relay.errors import StartupConfigError
from mpesa_relay.extensions import db
from mpesa_relay.utils.logger import get_logger

logger = get_logger('mpesa_relay.startup')

try:
    app = create_app(os.getenv('FLASK_ENV', 'development'))
except StartupConfigError as e:
    logger.critical(str(e))
    sys.exit(1)


@app.shell_context_processor
def make_shell_context():
    from mpesa_relay.models import Transaction, ApiLog
    return {
        'db': db,
        'Transaction': Transaction,
        'ApiLog': ApiLog
    }


if __name__ == '__main__':
    app.run(host='0.0.0.0', port=app.config['PORT'])
