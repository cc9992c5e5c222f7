"""Storefront URLs, CSS selectors, and page scripts."""

# ── URLs ─────────────────────────────────────────────────────────────────────

DEFAULT_BASE_URL = "https://shopee.co.th"
LOGIN_PATH = "/buyer/login"
CART_PATH = "/cart"

# ── Login detection ──────────────────────────────────────────────────────────

# Any one of these means the account menu rendered for a logged-in user.
ACCOUNT_MENU_SELECTORS = [
    '[data-testid="account-menu"]',
    ".navbar__username",
    'a[href*="/user/account"]',
    ".shopee-avatar",
]
SESSION_COOKIE_PREFIX = "SPC_"
AUTH_MARKER_SELECTOR = '[data-testid="account-menu"]'

LOGIN_USERNAME_SELECTOR = "input[type='text']"
LOGIN_PASSWORD_SELECTOR = "input[type='password']"
LOGIN_SUBMIT_SELECTOR = "button[type='submit']"

# ── Livestream page ──────────────────────────────────────────────────────────

# Order encodes priority: the first enabled match is the one we click.
PURCHASE_SELECTORS = [
    "button[class*='add-to-cart']",
    "button[class*='buy-now']",
    "button[class*='add-cart']",
    "div[class*='shop-bag'] button",
    ".shopee-button-solid",
]

FLASH_SALE_SELECTOR = '[class*="countdown"]'
PRODUCT_NAME_SELECTOR = '[class*="product-name"], [class*="product-title"]'
PRODUCT_PRICE_SELECTOR = '[class*="price"], [class*="amount"]'
PRODUCT_STOCK_SELECTOR = '[class*="stock"], [class*="quantity"]'

# ── Cart page ────────────────────────────────────────────────────────────────

CART_COUNT_SELECTOR = '[class*="cart-count"]'
CART_SELECT_ALL_SELECTOR = "input[type='checkbox'][class*='select-all']"
CART_DELETE_SELECTOR = "button[class*='delete']"
CART_CONFIRM_SELECTOR = "button[class*='confirm']"

# ── Checkout ─────────────────────────────────────────────────────────────────

CHECKOUT_SELECTORS = [
    "button[class*='checkout']",
    "a[href*='checkout']",
    ".shopee-button-solid--primary",
]
PLACE_ORDER_SELECTORS = [
    "button[class*='place-order']",
    "button[class*='submit-order']",
]
ORDER_SUCCESS_SELECTORS = [
    "[class*='order-success']",
    "[class*='payment-success']",
    ".success-icon",
]
# Substrings of the post-order URL that mean the order went through.
ORDER_SUCCESS_URL_MARKERS = ["success", "complete"]

# ── Stealth init scripts ─────────────────────────────────────────────────────

STEALTH_SCRIPTS = [
    """
    Object.defineProperty(navigator, 'webdriver', { get: () => undefined });
    """,
    """
    Object.defineProperty(navigator, 'platform', { get: () => 'Win32' });
    Object.defineProperty(navigator, 'vendor', { get: () => 'Google Inc.' });
    window.chrome = window.chrome || { runtime: {} };
    const originalToDataURL = HTMLCanvasElement.prototype.toDataURL;
    HTMLCanvasElement.prototype.toDataURL = function () {
        const context = this.getContext('2d');
        if (context) {
            context.fillStyle = 'rgba(' + Math.random() + ',' + Math.random() + ',' + Math.random() + ',0.01)';
            context.fillRect(0, 0, 1, 1);
        }
        return originalToDataURL.apply(this, arguments);
    };
    """,
]
