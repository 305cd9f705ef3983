# financehub/serializers.py
# Role: Convert ORM rows into the camelCase JSON payloads the SPA consumes.
#       This is the only place where cents become currency units.

from typing import Any

from financehub.services.freelance import session_hours, session_value_cents
from financehub.services.invoices import invoice_total_paid
from financehub.services.money import format_hours, from_cents, percent_of
from models import (
    Account,
    Category,
    FreelanceProject,
    Invoice,
    Item,
    Order,
    PartialPayment,
    RecurringTransaction,
    SavingsGoal,
    Task,
    TaskCost,
    Transaction,
    User,
    WorkSession,
    Workshop,
    WorkshopCost,
)


def _timestamps(row) -> dict[str, Any]:
    return {"createdAt": row.created_at, "updatedAt": row.updated_at}


# ---- Users & personal finance ----

def user_out(user: User) -> dict[str, Any]:
    # Never expose password_hash
    return {
        "id": user.id,
        "name": user.name,
        "email": user.email,
        "timezone": user.timezone,
        "currency": user.currency,
        **_timestamps(user),
    }


def account_out(account: Account) -> dict[str, Any]:
    return {
        "id": account.id,
        "name": account.name,
        "type": account.type,
        "balance": from_cents(account.balance),
        "currency": account.currency,
        "isActive": account.is_active,
        **_timestamps(account),
    }


def category_out(category: Category) -> dict[str, Any]:
    return {
        "id": category.id,
        "name": category.name,
        "color": category.color,
        "type": category.type,
        **_timestamps(category),
    }


def transaction_out(tx: Transaction) -> dict[str, Any]:
    return {
        "id": tx.id,
        "accountId": tx.account_id,
        "categoryId": tx.category_id,
        "description": tx.description,
        "amount": from_cents(tx.amount),
        "date": tx.date,
        "type": tx.type,
        "cleared": tx.cleared,
        "account": {"id": tx.account.id, "name": tx.account.name, "type": tx.account.type}
        if tx.account
        else None,
        "category": {
            "id": tx.category.id,
            "name": tx.category.name,
            "color": tx.category.color,
            "type": tx.category.type,
        }
        if tx.category
        else None,
        **_timestamps(tx),
    }


def savings_goal_out(goal: SavingsGoal) -> dict[str, Any]:
    return {
        "id": goal.id,
        "name": goal.name,
        "target": from_cents(goal.target),
        "current": from_cents(goal.current),
        "color": goal.color,
        "targetDate": goal.target_date,
        "progress": percent_of(goal.current, goal.target),
        **_timestamps(goal),
    }


def recurring_out(rec: RecurringTransaction) -> dict[str, Any]:
    return {
        "id": rec.id,
        "accountId": rec.account_id,
        "categoryId": rec.category_id,
        "description": rec.description,
        "amount": from_cents(rec.amount),
        "type": rec.type,
        "frequency": rec.frequency,
        "nextDueDate": rec.next_due_date,
        "isActive": rec.is_active,
        "account": {"id": rec.account.id, "name": rec.account.name} if rec.account else None,
        "category": {"id": rec.category.id, "name": rec.category.name, "color": rec.category.color}
        if rec.category
        else None,
        **_timestamps(rec),
    }


# ---- Freelance ----

def project_brief(project: FreelanceProject) -> dict[str, Any]:
    return {
        "id": project.id,
        "name": project.name,
        "client": project.client,
        "paymentType": project.payment_type,
    }


def project_out(project: FreelanceProject, with_stats: bool = False) -> dict[str, Any]:
    data = {
        "id": project.id,
        "name": project.name,
        "client": project.client,
        "status": project.status,
        "paymentType": project.payment_type,
        "hourlyRate": from_cents(project.hourly_rate),
        "totalHours": round(project.total_hours or 0.0, 4),
        "paidHours": round(project.paid_hours or 0.0, 4),
        "unpaidHours": round(project.unpaid_hours or 0.0, 4),
        "totalAmount": from_cents(project.total_amount),
        **_timestamps(project),
    }
    if with_stats:
        sessions = project.work_sessions
        data["totalSessions"] = len(sessions)
        data["completedSessions"] = sum(1 for s in sessions if s.end_time is not None)
        data["paidSessions"] = sum(1 for s in sessions if s.is_paid)
    return data


def work_session_out(ws: WorkSession, with_project: bool = True) -> dict[str, Any]:
    data = {
        "id": ws.id,
        "projectId": ws.project_id,
        "startTime": ws.start_time,
        "endTime": ws.end_time,
        "breakDuration": ws.break_duration,
        "isPaid": ws.is_paid,
        "description": ws.description,
        "customAmount": from_cents(ws.custom_amount) if ws.custom_amount is not None else None,
        "workHours": format_hours(session_hours(ws)),
        "isActive": ws.end_time is None,
        "transactionId": ws.transaction_id,
        "invoiceId": ws.invoice_link.invoice_id if ws.invoice_link else None,
        **_timestamps(ws),
    }
    if with_project and ws.project is not None:
        data["project"] = project_brief(ws.project)
    return data


def partial_payment_out(payment: PartialPayment) -> dict[str, Any]:
    data = {
        "id": payment.id,
        "invoiceId": payment.invoice_id,
        "workSessionId": payment.work_session_id,
        "amount": from_cents(payment.amount),
        "paymentDate": payment.payment_date,
        "description": payment.description,
        "transactionId": payment.transaction_id,
        **_timestamps(payment),
    }
    if payment.invoice is not None:
        data["invoice"] = {
            "id": payment.invoice.id,
            "invoiceNumber": payment.invoice.invoice_number,
            "project": {"id": payment.invoice.project.id, "name": payment.invoice.project.name},
        }
    if payment.work_session is not None:
        data["workSession"] = {
            "id": payment.work_session.id,
            "project": {
                "id": payment.work_session.project.id,
                "name": payment.work_session.project.name,
            },
        }
    return data


def invoice_out(invoice: Invoice) -> dict[str, Any]:
    total_paid = invoice_total_paid(invoice)
    payments = sorted(invoice.partial_payments, key=lambda p: (p.payment_date, p.id), reverse=True)
    return {
        "id": invoice.id,
        "invoiceNumber": invoice.invoice_number,
        "projectId": invoice.project_id,
        "amount": from_cents(invoice.amount),
        "status": invoice.status,
        "dueDate": invoice.due_date,
        "paidDate": invoice.paid_date,
        "description": invoice.description,
        "project": project_brief(invoice.project),
        "invoiceWorkSessions": [
            {
                "id": link.id,
                "workSessionId": link.work_session_id,
                "workSession": work_session_out(link.work_session, with_project=False),
            }
            for link in invoice.session_links
        ],
        "partialPayments": [
            {
                "id": p.id,
                "amount": from_cents(p.amount),
                "paymentDate": p.payment_date,
                "description": p.description,
                "transactionId": p.transaction_id,
            }
            for p in payments
        ],
        "totalPaid": from_cents(total_paid),
        "remainingAmount": from_cents(max(invoice.amount - total_paid, 0)),
        "isFullyPaid": total_paid >= invoice.amount,
        **_timestamps(invoice),
    }


def session_payment_state(ws: WorkSession) -> dict[str, Any]:
    paid = sum(p.amount for p in ws.partial_payments)
    value = session_value_cents(ws)
    return {
        "sessionValue": from_cents(value),
        "totalPaid": from_cents(paid),
        "remainingAmount": from_cents(max(value - paid, 0)),
    }


# ---- Operations ----

def item_out(item: Item) -> dict[str, Any]:
    return {
        "id": item.id,
        "name": item.name,
        "description": item.description,
        "quantity": item.quantity,
        "unitCost": from_cents(item.unit_cost),
        "minStock": item.min_stock,
        "maxStock": item.max_stock,
        "isActive": item.is_active,
        "totalValue": from_cents(item.quantity * item.unit_cost),
        "isLowStock": item.quantity <= item.min_stock,
        **_timestamps(item),
    }


def order_brief(order: Order | None) -> dict[str, Any] | None:
    if order is None:
        return None
    return {
        "id": order.id,
        "orderNumber": order.order_number,
        "status": order.status,
        "amount": from_cents(order.amount),
    }


def order_out(order: Order) -> dict[str, Any]:
    return {
        "id": order.id,
        "orderNumber": order.order_number,
        "amount": from_cents(order.amount),
        "type": order.type,
        "status": order.status,
        "priority": order.priority,
        "dueDate": order.due_date,
        "description": order.description,
        "paidAt": order.paid_at,
        "orderItems": [
            {
                "id": oi.id,
                "itemId": oi.item_id,
                "quantity": oi.quantity,
                "unitPrice": from_cents(oi.unit_price),
                "total": from_cents(oi.quantity * oi.unit_price),
                "item": {"id": oi.item.id, "name": oi.item.name, "quantity": oi.item.quantity},
            }
            for oi in order.order_items
        ],
        "tasks": [{"id": t.id, "title": t.title, "status": t.status} for t in order.tasks],
        "workshops": [{"id": w.id, "title": w.title, "date": w.date} for w in order.workshops],
        **_timestamps(order),
    }


def task_cost_out(cost: TaskCost) -> dict[str, Any]:
    return {
        "id": cost.id,
        "taskId": cost.task_id,
        "description": cost.description,
        "amount": from_cents(cost.amount),
        "itemId": cost.item_id,
        "item": {"id": cost.item.id, "name": cost.item.name} if cost.item else None,
        "createdAt": cost.created_at,
    }


def workshop_cost_out(cost: WorkshopCost) -> dict[str, Any]:
    return {
        "id": cost.id,
        "workshopId": cost.workshop_id,
        "description": cost.description,
        "amount": from_cents(cost.amount),
        "createdAt": cost.created_at,
    }


def task_out(task: Task) -> dict[str, Any]:
    return {
        "id": task.id,
        "title": task.title,
        "description": task.description,
        "status": task.status,
        "dueDate": task.due_date,
        "assignedTo": task.assigned_to,
        "orderId": task.order_id,
        "workshopId": task.workshop_id,
        "order": order_brief(task.order),
        "workshop": {"id": task.workshop.id, "title": task.workshop.title} if task.workshop else None,
        "costs": [task_cost_out(c) for c in task.costs],
        "totalCost": from_cents(sum(c.amount for c in task.costs)),
        **_timestamps(task),
    }


def workshop_out(workshop: Workshop, with_tasks: bool = False) -> dict[str, Any]:
    data = {
        "id": workshop.id,
        "title": workshop.title,
        "client": workshop.client,
        "organization": workshop.organization,
        "date": workshop.date,
        "location": workshop.location,
        "notes": workshop.notes,
        "orderId": workshop.order_id,
        "order": order_brief(workshop.order),
        "costs": [workshop_cost_out(c) for c in workshop.costs],
        "totalCost": from_cents(sum(c.amount for c in workshop.costs)),
        **_timestamps(workshop),
    }
    if with_tasks:
        data["tasks"] = [task_out(t) for t in workshop.tasks]
    return data
