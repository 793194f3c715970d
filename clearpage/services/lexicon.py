"""Curated vocabularies used by the noise and promotional classifiers.

Every list is a field of the frozen :class:`Lexicon` model so callers can
inject an alternative (e.g. localised) vocabulary instead of patching module
state.  :data:`DEFAULT_LEXICON` is the English vocabulary shipped with the
service.  None of the lists aim to be exhaustive; they are maintained
denylists tuned against real retail and news pages.
"""

from typing import FrozenSet, Tuple

from pydantic import BaseModel, ConfigDict


class Lexicon(BaseModel):
    model_config = ConfigDict(frozen=True)

    noise_element_keywords: Tuple[str, ...]
    """Tokens matched against id / class / data-* attributes.

    A keyword must be delimited by the attribute boundary or a non
    alphanumeric character, so ``cart`` matches ``mini-cart`` but not
    ``cartography``.
    """

    chrome_phrases: FrozenSet[str]
    """Interface micro-copy matched exactly (case-insensitive)."""

    promo_verbs: FrozenSet[str]
    """Imperative marketing verbs that open short calls to action."""

    marketing_keywords: Tuple[str, ...]
    """Phrases whose density marks a paragraph as marketing copy."""

    cta_adverbs: FrozenSet[str]
    """Trailing words that close a call to action ("... today")."""

    carousel_phrases: FrozenSet[str]
    """Carousel / pagination control labels excluded from buttons."""

    primary_nav_labels: Tuple[str, ...]
    secondary_nav_labels: Tuple[str, ...]

    lazy_src_attrs: Tuple[str, ...]
    """Lazy-load attributes checked, in priority order, for an image address."""

    search_param_names: Tuple[str, ...]


DEFAULT_LEXICON = Lexicon(
    noise_element_keywords=(
        # commerce
        "product-card",
        "product-tile",
        "product-grid",
        "product-list",
        "cart",
        "basket",
        "checkout",
        "price",
        "add-to",
        "wishlist",
        "shop-the",
        # marketing
        "promo",
        "ad",
        "ads",
        "advert",
        "advertisement",
        "sponsor",
        "sponsored",
        "newsletter",
        "subscribe",
        "upsell",
        "cross-sell",
        "recommend",
        "related-products",
        "you-may-also",
        # consent
        "cookie",
        "consent",
        "gdpr",
        # social
        "social",
        "share",
        "follow-us",
        # carousel / layout chrome
        "carousel",
        "slider",
        "swiper",
        "sidebar",
        "widget",
        "popup",
        "modal",
        "overlay",
        "toast",
        "rating",
        "review-stars",
    ),
    chrome_phrases=frozenset(
        {
            "add to cart",
            "add to basket",
            "add to bag",
            "add to trolley",
            "add to list",
            "add to wishlist",
            "buy now",
            "shop now",
            "shop all",
            "see all",
            "see more",
            "view all",
            "view more",
            "show more",
            "show less",
            "load more",
            "learn more",
            "read more",
            "find out more",
            "more info",
            "more details",
            "details",
            "quick view",
            "sign in",
            "log in",
            "register",
            "menu",
            "close",
            "back",
            "next",
            "previous",
            "prev",
            "skip to content",
            "skip to main content",
            "accept",
            "accept all",
            "reject all",
            "got it",
            "share",
            "save",
            "sold out",
            "out of stock",
            "in stock",
            "new",
            "sale",
            "offer",
        }
    ),
    promo_verbs=frozenset(
        {
            "shop",
            "buy",
            "order",
            "grab",
            "discover",
            "browse",
            "save",
            "explore",
            "get",
            "claim",
            "unlock",
            "enjoy",
            "stock",
            "treat",
            "try",
            "join",
        }
    ),
    marketing_keywords=(
        "shop online",
        "start shopping",
        "shopping",
        "your door",
        "doorstep",
        "fingertips",
        "free delivery",
        "free shipping",
        "delivered",
        "deals",
        "best prices",
        "low prices",
        "great value",
        "discount",
        "exclusive",
        "limited time",
        "special offer",
        "offers",
        "members",
        "rewards",
        "loyalty",
        "sign up",
        "subscribe",
        "% off",
        "bargain",
        "hassle-free",
        "don't miss",
    ),
    cta_adverbs=frozenset({"today", "now"}),
    carousel_phrases=frozenset(
        {
            "next",
            "previous",
            "prev",
            "next slide",
            "previous slide",
            "go to slide",
            "slide",
            "pause",
            "play",
            "scroll left",
            "scroll right",
            "next page",
            "previous page",
        }
    ),
    primary_nav_labels=("primary", "main", "site", "global", "top"),
    secondary_nav_labels=("secondary", "footer", "legal", "social", "breadcrumb", "utility"),
    lazy_src_attrs=(
        "data-src",
        "data-lazy-src",
        "data-original",
        "data-lazy",
        "data-url",
        "data-hi-res-src",
    ),
    search_param_names=("q", "query", "search", "s"),
)
