from decimal import Decimal

from storefront.payments import JsonNumber, build_handoff, field_value, handoff_html

PAYFAST_URL = "https://sandbox.payfast.co.za/eng/process"


def test_field_values_keep_their_literal_form():
    assert field_value("abc") == "abc"
    assert field_value(True) == "true"
    assert field_value(False) == "false"
    assert field_value(3) == "3"
    assert field_value(Decimal("100.00")) == "100.00"
    assert field_value(None) == ""


def test_build_handoff_preserves_order_and_url():
    handoff = build_handoff(PAYFAST_URL, {
        "merchant_id": "10000100",
        "amount": Decimal("100.00"),
        "email_confirmation": True,
        "custom_int1": 3,
    })
    assert handoff.redirect_url == PAYFAST_URL
    assert handoff.fields == (
        ("merchant_id", "10000100"),
        ("amount", "100.00"),
        ("email_confirmation", "true"),
        ("custom_int1", "3"),
    )


def test_empty_payment_data_gives_empty_form():
    assert build_handoff(PAYFAST_URL, {}).fields == ()


def test_html_posts_exactly_the_received_fields():
    handoff = build_handoff(PAYFAST_URL, {"merchant_id": "10000100", "amount": Decimal("100.00"), "signature": "abc123"})
    html = handoff_html(handoff)

    assert f'action="{PAYFAST_URL}"' in html
    assert 'method="POST"' in html
    assert html.count('type="hidden"') == 3
    assert 'name="amount" value="100.00"' in html
    assert 'name="signature" value="abc123"' in html
    assert ".submit()" in html


def test_html_only_escapes_values():
    handoff = build_handoff(PAYFAST_URL, {"item_name": 'Rings & "Chains"'})
    html = handoff_html(handoff)
    assert "Rings &amp; &#34;Chains&#34;" in html
    assert 'Rings & "Chains"' not in html


def test_decoded_numbers_keep_exponent_literal():
    handoff = build_handoff(PAYFAST_URL, {"amount": JsonNumber("100.00"), "custom_int1": JsonNumber("1e5")})
    assert handoff.fields == (("amount", "100.00"), ("custom_int1", "1e5"))
