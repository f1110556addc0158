from django.test import TestCase

from .models import Order, OrderStatus, PaymentMethod, PaymentStatus
from .services import (
    OrderServiceError,
    get_order,
    record_payment_reference,
    update_order_payment_status,
    update_order_status,
)
from .utils import format_naira, kobo_to_naira, naira_to_kobo


class OrderModelTests(TestCase):
    def test_order_number_generated_on_save(self):
        order = Order.objects.create(customer_id="c1")
        self.assertTrue(order.order_number.startswith("GAB"))
        self.assertEqual(len(order.order_number), 15)
        self.assertTrue(order.order_id)
        self.assertEqual(order.status, OrderStatus.PENDING)
        self.assertEqual(order.payment_status, PaymentStatus.PENDING)
        self.assertFalse(order.is_paid)


class PaymentStatusServiceTests(TestCase):
    def setUp(self):
        self.order = Order.objects.create(order_id="o_1", customer_id="c1", final_amount=250000)

    def test_sets_status_reference_and_amount(self):
        update_order_payment_status("o_1", PaymentStatus.PAID, "GAB_o_1_1", 250000)
        self.order.refresh_from_db()
        self.assertEqual(self.order.payment_status, PaymentStatus.PAID)
        self.assertEqual(self.order.payment_reference, "GAB_o_1_1")
        self.assertEqual(self.order.amount_paid, 250000)
        self.assertTrue(self.order.is_paid)

    def test_zero_amount_keeps_previous_payment(self):
        update_order_payment_status("o_1", PaymentStatus.PAID, "GAB_o_1_1", 250000)
        update_order_payment_status("o_1", PaymentStatus.FAILED, "GAB_o_1_2", 0)
        self.order.refresh_from_db()
        self.assertEqual(self.order.payment_status, PaymentStatus.FAILED)
        self.assertEqual(self.order.payment_reference, "GAB_o_1_2")
        self.assertEqual(self.order.amount_paid, 250000)

    def test_unknown_order_raises(self):
        with self.assertRaises(OrderServiceError):
            update_order_payment_status("nope", PaymentStatus.PAID)

    def test_unknown_status_raises(self):
        with self.assertRaises(OrderServiceError):
            update_order_payment_status("o_1", "settled")


class OrderStatusServiceTests(TestCase):
    def setUp(self):
        self.order = Order.objects.create(order_id="o_2", customer_id="c2")

    def test_confirm_requires_paid(self):
        with self.assertRaises(OrderServiceError):
            update_order_status("o_2", OrderStatus.CONFIRMED, "system")
        self.order.refresh_from_db()
        self.assertEqual(self.order.status, OrderStatus.PENDING)
        self.assertEqual(self.order.order_history, [])

    def test_history_is_appended(self):
        update_order_payment_status("o_2", PaymentStatus.PAID, "GAB_o_2_1", 1000)
        update_order_status("o_2", OrderStatus.CONFIRMED, "system", "Payment confirmed")
        update_order_status("o_2", OrderStatus.IN_PROGRESS, "staff-7")

        self.order.refresh_from_db()
        self.assertEqual(self.order.status, OrderStatus.IN_PROGRESS)
        self.assertEqual([h["status"] for h in self.order.order_history], ["confirmed", "in_progress"])
        self.assertEqual(self.order.order_history[0]["notes"], "Payment confirmed")
        self.assertEqual(self.order.order_history[1]["staff_id"], "staff-7")
        self.assertIsNone(self.order.order_history[1]["notes"])

    def test_ready_and_delivered_set_times(self):
        update_order_status("o_2", OrderStatus.READY, "staff-1")
        self.order.refresh_from_db()
        self.assertIsNotNone(self.order.actual_pickup_time)
        self.assertIsNone(self.order.actual_delivery_time)

        update_order_status("o_2", OrderStatus.DELIVERED, "staff-1")
        self.order.refresh_from_db()
        self.assertIsNotNone(self.order.actual_delivery_time)

    def test_unknown_order_raises(self):
        with self.assertRaises(OrderServiceError):
            update_order_status("missing", OrderStatus.READY, "staff-1")


class RecordPaymentReferenceTests(TestCase):
    def test_reference_recorded_for_pending_order(self):
        Order.objects.create(order_id="o_3", customer_id="c3")
        record_payment_reference("o_3", "GAB_o_3_1700000000000")
        order = get_order("o_3")
        self.assertEqual(order.payment_reference, "GAB_o_3_1700000000000")
        self.assertEqual(order.payment_method, PaymentMethod.ONLINE)

    def test_paid_order_rejected(self):
        Order.objects.create(order_id="o_4", customer_id="c4", payment_status=PaymentStatus.PAID)
        with self.assertRaises(OrderServiceError):
            record_payment_reference("o_4", "GAB_o_4_1")

    def test_get_order_unknown(self):
        with self.assertRaises(OrderServiceError):
            get_order("missing")


class MoneyHelperTests(TestCase):
    def test_conversions(self):
        self.assertEqual(naira_to_kobo("1500"), 150000)
        self.assertEqual(naira_to_kobo(12.345), 1235)
        self.assertEqual(str(kobo_to_naira(150050)), "1500.5")

    def test_format_naira(self):
        self.assertEqual(format_naira(150000), "₦1,500")
        self.assertEqual(format_naira(123450), "₦1,234.50")
        self.assertEqual(format_naira(0), "₦0")
        self.assertEqual(format_naira(None), "₦0")
