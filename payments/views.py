# payments/views.py
import logging

import razorpay
from django.db import transaction
from django.http import JsonResponse
from django.utils import timezone
from django.views.decorators.csrf import csrf_exempt
from django.views.decorators.http import require_POST

from eyewear.utils import api_login_required, parse_json_body
from orders.models import Order, OrderStatus, PaymentStatus, PaymentMethod
from orders import service

logger = logging.getLogger(__name__)


def _payment_matches(payment, razorpay_order_id, order):
    """The captured payment must belong to this gateway order and cover the order total."""
    try:
        amount = int(payment.get('amount'))
    except (TypeError, ValueError):
        return False
    return payment.get('order_id') == razorpay_order_id and amount == int(order.total * 100)


@csrf_exempt
@api_login_required
@require_POST
def verify_payment(request):
    """Handle Razorpay payment verification"""
    data = parse_json_body(request)
    if data is None:
        return JsonResponse({'success': False, 'message': 'Invalid request body'}, status=400)

    razorpay_order_id = data.get('razorpayOrderId')
    razorpay_payment_id = data.get('razorpayPaymentId')
    razorpay_signature = data.get('razorpaySignature')
    order_id = data.get('orderId')

    if not all([razorpay_order_id, razorpay_payment_id, razorpay_signature, order_id]):
        return JsonResponse({'success': False, 'message': 'Missing payment data'}, status=400)

    order = Order.objects.filter(
        pk=order_id if str(order_id).isdigit() else None,
        user=request.user,
    ).exclude(payment_method=PaymentMethod.COD).first()
    if order is None:
        return JsonResponse({'success': False, 'message': 'Order not found'}, status=404)
    if order.payment_status == PaymentStatus.PAID:
        return JsonResponse({'success': True, 'message': 'Payment already verified', 'orderId': order.id})

    if order.razorpay_order_id and order.razorpay_order_id != razorpay_order_id:
        logger.warning("Gateway order mismatch for %s", order.order_number)
        return JsonResponse({'success': False, 'message': 'Payment does not match this order'}, status=400)
    if Order.objects.filter(payment_id=razorpay_payment_id).exclude(pk=order.pk).exists():
        logger.warning("Payment %s reused for order %s", razorpay_payment_id, order.order_number)
        return JsonResponse({'success': False, 'message': 'Payment already used'}, status=400)

    try:
        service.razorpay_client.utility.verify_payment_signature({
            'razorpay_order_id': razorpay_order_id,
            'razorpay_payment_id': razorpay_payment_id,
            'razorpay_signature': razorpay_signature,
        })
    except razorpay.errors.SignatureVerificationError:
        logger.warning("Signature verification failed for order %s", order.order_number)
        Order.objects.filter(pk=order.pk).update(payment_status=PaymentStatus.FAILED)
        return JsonResponse({'success': False, 'message': 'Signature verification failed'}, status=400)

    try:
        payment = service.razorpay_client.payment.fetch(razorpay_payment_id)
    except (razorpay.errors.BadRequestError, razorpay.errors.GatewayError, razorpay.errors.ServerError) as e:
        logger.error("Could not fetch payment %s: %s", razorpay_payment_id, e)
        return JsonResponse({'success': False, 'message': 'Could not confirm payment'}, status=502)

    if not _payment_matches(payment, razorpay_order_id, order):
        logger.warning(
            "Payment %s (order_id=%s amount=%s) does not cover order %s (total=%s)",
            razorpay_payment_id, payment.get('order_id'), payment.get('amount'), order.order_number, order.total,
        )
        return JsonResponse({'success': False, 'message': 'Payment does not match this order'}, status=400)

    # ✅ Mark as paid (stock already reserved during order creation)
    with transaction.atomic():
        order = Order.objects.select_for_update().get(pk=order.pk)
        if order.payment_status == PaymentStatus.PAID:
            return JsonResponse({'success': True, 'message': 'Payment already verified', 'orderId': order.id})
        if Order.objects.filter(payment_id=razorpay_payment_id).exclude(pk=order.pk).exists():
            return JsonResponse({'success': False, 'message': 'Payment already used'}, status=400)

        order.payment_status = PaymentStatus.PAID
        order.payment_id = razorpay_payment_id
        order.razorpay_order_id = razorpay_order_id
        order.paid_at = timezone.now()
        order.save(update_fields=['payment_status', 'payment_id', 'razorpay_order_id', 'paid_at', 'updated_at'])
        if order.status == OrderStatus.PENDING:
            order = service.transition_status(order, OrderStatus.PROCESSING, "Payment received")

    logger.info("Payment %s verified for order %s", razorpay_payment_id, order.order_number)
    return JsonResponse({
        'success': True,
        'message': 'Payment verified',
        'orderId': order.id,
        'status': order.status,
        'paymentStatus': PaymentStatus.PAID,
    })
