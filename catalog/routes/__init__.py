from catalog.routes.main import bp as main_bp
from catalog.routes.categories import bp as categories_bp
from catalog.routes.products import bp as products_bp


def register_blueprints(app):
    app.register_blueprint(main_bp)
    app.register_blueprint(categories_bp, url_prefix="/api/categories")
    app.register_blueprint(products_bp, url_prefix="/api/products")
