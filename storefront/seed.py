import logging

from .models import PromoCode, Product, Setting, ShippingZone, db
from .utils import to_money

logger = logging.getLogger(__name__)

# (name, price, description, image_url, stock, category)
PRODUCTS = [
    ('Single-Origin Cacao Beans (Bukidnon) 1kg', 349, 'Single-origin beans with fruity notes.', '/assets/beans-bukidnon-1kg.jpg', 14, 'Farm & Origin'),
    ('Single-Origin Cacao Beans (Davao) 1kg', 349, 'Deep cacao flavor with nutty finish.', '/assets/beans-davao-1kg.jpg', 14, 'Farm & Origin'),
    ('Fresh Cacao Beans 500g', 169, 'Fresh cacao beans, lightly cleaned and sorted.', '/assets/fresh-cacao-beans-500g.jpg', 25, 'Raw & Fermented Cacao'),
    ('Fermented Cacao Beans 1kg', 329, 'Fermented beans for richer aroma.', '/assets/fermented-cacao-beans-1kg.jpg', 15, 'Raw & Fermented Cacao'),
    ('Cacao Nibs 200g', 179, 'Crunchy cacao nibs for toppings.', '/assets/cacao-nibs-200g.jpg', 20, 'Cacao Derivatives'),
    ('Cacao Mass (Liquor) 250g', 249, 'Pure cacao paste for recipes.', '/assets/cacao-mass-250g.jpg', 14, 'Cacao Derivatives'),
    ('Natural Cocoa Powder 250g', 149, 'Natural cocoa powder for baking.', '/assets/natural-cocoa-powder-250g.jpg', 30, 'Baking & Pastry'),
    ('Alkalized Cocoa Powder 250g', 169, 'Dutch-process cocoa for smooth flavor.', '/assets/alkalized-cocoa-powder-250g.jpg', 22, 'Baking & Pastry'),
    ('Baking Chocolate 60% 200g', 189, 'Baking chocolate for desserts.', '/assets/baking-chocolate-60-200g.jpg', 16, 'Baking & Pastry'),
    ('Chocolate Chips 250g', 139, 'Chocolate chips for cookies.', '/assets/chocolate-chips-250g.jpg', 28, 'Baking & Pastry'),
    ('Food-Grade Cacao Butter 250g', 219, 'Edible cacao butter for cooking.', '/assets/cacao-butter-foodgrade-250g.jpg', 12, 'Cacao Butter & Oils'),
    ('Deodorized Cacao Butter 500g', 399, 'Neutral-scent cacao butter.', '/assets/cacao-butter-deodorized-500g.jpg', 10, 'Cacao Butter & Oils'),
    ('Dark Chocolate Bar 70% 50g', 99, '70% dark chocolate bar.', '/assets/dark-chocolate-70-50g.jpg', 35, 'Snacks & Bars'),
    ('Milk Chocolate Bar 50g', 89, 'Creamy milk chocolate bar.', '/assets/milk-chocolate-50g.jpg', 40, 'Snacks & Bars'),
    ('Cacao Truffles Box (9pcs)', 249, 'Assorted cacao truffles.', '/assets/cacao-truffles-9pcs.jpg', 12, 'Chocolate & Confections'),
    ('Bean-to-Bar Sampler (4pcs)', 299, 'Curated bean-to-bar sampler.', '/assets/bean-to-bar-sampler-4pcs.jpg', 10, 'Chocolate & Confections'),
    ('Cacao Drink Mix', 129, 'Instant cacao drink mix.', '/assets/cacao-drink-mix.jpg', 24, 'Drinks & Mixes'),
    ('Hot Chocolate Sticks (6pcs)', 159, 'Stir-in hot chocolate sticks.', '/assets/hot-chocolate-sticks-6pcs.jpg', 18, 'Drinks & Mixes'),
    ('Cacao Granola 400g', 199, 'Cacao granola for breakfast.', '/assets/cacao-granola-400g.jpg', 14, 'Food & Beverages'),
    ('Cacao Spread 200g', 179, 'Creamy cacao spread.', '/assets/cacao-spread-200g.jpg', 16, 'Food & Beverages'),
    ('Ceremonial Cacao 500g', 399, 'Premium ceremonial grade cacao.', '/assets/ceremonial-cacao-500g.jpg', 8, 'Wellness & Ritual'),
    ('Cacao Husk Tea 200g', 129, 'Aromatic cacao husk tea.', '/assets/cacao-husk-tea-200g.jpg', 20, 'Wellness & Ritual'),
    ('Cacao Protein Blend 500g', 349, 'Protein blend with cacao.', '/assets/cacao-protein-blend-500g.jpg', 10, 'Wellness & Ritual'),
    ('Cacao Roasting Guidebook', 149, 'Beginner guide to roasting cacao.', '/assets/cacao-roasting-guidebook.jpg', 20, 'Roasting & Craft'),
    ('Manual Cacao Grinder', 899, 'Hand grinder for cacao beans.', '/assets/manual-cacao-grinder.jpg', 5, 'Tools & Equipment'),
    ('Chocolate Mold Set', 229, 'Silicone molds for chocolate.', '/assets/chocolate-mold-set.jpg', 12, 'Tools & Equipment'),
    ('Cacao Sampler Bundle', 499, 'Bundle of best-selling cacao items.', '/assets/cacao-sampler-bundle.jpg', 8, 'Gifts & Bundles'),
    ('Chocolate Lovers Gift Box', 599, 'Gift box for chocolate lovers.', '/assets/chocolate-lovers-gift-box.jpg', 6, 'Gifts & Bundles'),
]

BEST_SELLERS = {'Dark Chocolate Bar 70% 50g', 'Cacao Nibs 200g', 'Cacao Sampler Bundle'}
NEW_ARRIVALS = {'Cacao Protein Blend 500g', 'Cacao Husk Tea 200g'}
LIMITED = {'Ceremonial Cacao 500g', 'Chocolate Lovers Gift Box'}

PROMO_CODES = [
    ('SAVE10', 'PERCENT', 10),
    ('LESS50', 'FIXED', 50),
    ('ARAYMOPAKAK', 'PERCENT', 15),
]


def init_data():
    """Ensure the base catalog, promo codes, a shipping zone and store settings exist.

    Safe to run on every start: existing rows keep any admin edits, only blank
    product fields get filled in.
    """
    created = 0
    for name, price, description, image_url, stock, category in PRODUCTS:
        p = Product.query.filter_by(name=name).first()
        if p is None:
            p = Product(name=name, price=to_money(price), stock=stock)
            db.session.add(p)
            created += 1
        p.category = p.category or category
        p.description = p.description or description
        p.image_url = p.image_url or image_url
        p.best_seller = p.best_seller or name in BEST_SELLERS
        p.new = p.new or name in NEW_ARRIVALS
        p.limited = p.limited or name in LIMITED

    for code, ptype, value in PROMO_CODES:
        promo = db.session.get(PromoCode, code)
        if promo is None:
            promo = PromoCode(code=code)
            db.session.add(promo)
        promo.type = ptype
        promo.value = to_money(value)
        promo.active = True

    if ShippingZone.query.count() == 0:
        db.session.add(ShippingZone(name='Domestic', fee=to_money(0), active=True))

    if db.session.get(Setting, 'store_name') is None:
        db.session.add(Setting(key='store_name', value='Cacao Storefront'))

    db.session.commit()
    logger.info('Seed data ensured (%d new products, %d promo codes)', created, len(PROMO_CODES))
