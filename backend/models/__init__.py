from models.chart_of_accounts import CoaGroup, CoaSubGroup, CoaAccount
from models.vouchers import Voucher, VoucherTransaction
from models.audit_log import AuditLog

__all__ = ['AuditLog', 'CoaAccount', 'CoaGroup', 'CoaSubGroup', 'Voucher', 'VoucherTransaction']
