import logging

from storefront import create_app
from storefront.models import PromoCode, Product

app = create_app()
logger = logging.getLogger('storefront')


if __name__ == '__main__':
    with app.app_context():
        product_count = Product.query.count()
        promo_count = PromoCode.query.count()
    logger.info('=' * 50)
    logger.info('Cacao Storefront v%s', app.config['APP_VERSION'])
    logger.info('Loaded %d products, %d promo codes', product_count, promo_count)
    logger.info('Order status mode: %s', app.config['ORDER_STATUS_MODE'])
    logger.info('Starting server on http://localhost:5001')
    logger.info('=' * 50)
    if app.debug:
        logger.warning('Debug mode enabled - not for production use!')
    app.run(host='0.0.0.0', port=5001, debug=app.debug)
