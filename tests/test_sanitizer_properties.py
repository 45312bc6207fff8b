"""
Property-based tests for the product sanitizer.
"""

from hypothesis import given, settings, strategies as st

from valet.models import Product
from valet.services.media import sanitize_products
from valet.services.media.validator import is_blocked_host, is_good_media_url, is_http_url, is_same_site


domains = st.sampled_from(["amazon.com", "fnac.com", "ebay.fr", "apple.com", "example.com", "shop.io"])
product_urls = st.one_of(
    st.builds(lambda d, n: f"https://www.{d}/p/{n}", domains, st.integers(min_value=1, max_value=999)),
    st.sampled_from(["ftp://files.shop.io/p/1", "not a url", "https://", "/relative/p/2"]),
)
image_urls = st.one_of(
    st.none(),
    st.just(""),
    st.builds(
        lambda d, ext: f"https://img.{d}/media/photo.{ext}",
        domains,
        st.sampled_from(["jpg", "png", "webp", "html", "php"])
    ),
    st.just("http://img.shop.io/broken path.jpg"),
)

products = st.builds(
    Product,
    id=st.integers(min_value=1, max_value=50).map(str),
    name=st.text(alphabet="abcdefghij ", min_size=1, max_size=20).filter(lambda s: s.strip()),
    price=st.one_of(st.none(), st.floats(min_value=0, max_value=5000, allow_nan=False)),
    url=product_urls,
    image_url=image_urls,
)
product_lists = st.lists(products, max_size=12)


@given(items=product_lists)
@settings(max_examples=100)
def test_sanitizer_is_idempotent(items):
    """
    **Feature: product-search, Property 3: Sanitizer idempotence**

    For any product list, sanitizing twice gives the same result as once.
    """
    once = sanitize_products(items)
    twice = sanitize_products(once)

    assert twice == once


@given(items=product_lists)
@settings(max_examples=100)
def test_sanitized_products_are_trusted(items):
    """
    Every surviving product has an http(s) URL on a non-blocked host and a
    good, same-site image.
    """
    for product in sanitize_products(items):
        assert is_http_url(product.url)
        assert not is_blocked_host(product.url)
        assert is_good_media_url(product.image_url)
        assert is_same_site(product.url, product.image_url)


@given(items=product_lists)
@settings(max_examples=100)
def test_sanitizer_preserves_order_and_never_adds(items):
    result = sanitize_products(items)

    # Survivors keep their image, so they are the input objects themselves
    positions = [next(i for i, item in enumerate(items) if item is product) for product in result]
    assert positions == sorted(positions)
    assert len(set(positions)) == len(positions)


def test_cross_site_image_drops_product():
    """
    **Feature: product-search, Scenario E**

    An image on a different base domain than the product URL is removed,
    and the product is then dropped for lacking an image.
    """
    product = Product(
        id="1",
        name="Casque sans fil",
        price=99.0,
        url="https://www.fnac.com/casque",
        image_url="https://images.cdn-other.net/casque.jpg",
    )

    assert sanitize_products([product]) == []


def test_same_site_image_is_kept():
    product = Product(
        id="1",
        name="Casque sans fil",
        price=99.0,
        url="https://www.fnac.com/casque",
        image_url="https://static.fnac.com/images/casque.jpg",
    )

    assert sanitize_products([product]) == [product]


def test_input_products_are_not_mutated():
    product = Product(
        id="1",
        name="Casque",
        url="https://www.fnac.com/casque",
        image_url="https://images.other.net/casque.jpg",
    )

    sanitize_products([product])

    assert product.image_url == "https://images.other.net/casque.jpg"


def test_blocked_product_host_is_dropped():
    product = Product(
        id="1",
        name="iPhone",
        url="https://www.apple.com/iphone",
        image_url="https://www.apple.com/iphone.jpg",
    )

    assert sanitize_products([product]) == []
