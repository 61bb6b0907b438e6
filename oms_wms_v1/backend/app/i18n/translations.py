from __future__ import annotations

from app.services.approval_status import ApprovalStatus

TRANSLATIONS: dict[str, dict[str, str]] = {
    "ko": {
        "app_title": "OMS-WMS 통합 시스템",
        "app_subtitle": "주문 관리 시스템 - 창고 관리 시스템 연동",
        "nav_dashboard": "대시보드",
        "nav_inbound_detail": "입고 상세",
        "form_title": "입고 요청",
        "basic_info": "기본 정보",
        "po_number": "발주번호",
        "supplier": "공급업체명",
        "request_date": "요청 날짜",
        "expected_date": "예정 입고일",
        "approval_status": "승인 상태",
        "memo": "메모",
        "items": "상품 목록",
        "sku": "SKU",
        "product_name": "상품명",
        "quantity": "수량",
        "unit": "단위",
        "submit": "입고 요청 제출",
        "submitted": "입고 요청이 제출되었습니다",
        "recent_requests": "최근 입고 요청",
        "no_requests": "입고 요청이 없습니다",
        "detail_title": "입고 상세 정보",
        "request_id": "요청 ID",
        "last_updated": "마지막 업데이트",
        "history": "진행 상황",
        "reason": "사유",
        "change_status": "상태 변경",
        "delete_request": "요청 삭제",
        "deleted": "입고 요청이 삭제되었습니다",
        "not_found": "입고 요청을 찾을 수 없습니다",
        "select_request": "조회할 요청을 선택하세요",
        "language": "언어",
    },
    "en": {
        "app_title": "OMS-WMS Integration",
        "app_subtitle": "Order Management System - Warehouse Management System Integration",
        "nav_dashboard": "Dashboard",
        "nav_inbound_detail": "Inbound Detail",
        "form_title": "Inbound Request",
        "basic_info": "Basic Information",
        "po_number": "PO Number",
        "supplier": "Supplier",
        "request_date": "Request Date",
        "expected_date": "Expected Date",
        "approval_status": "Approval Status",
        "memo": "Memo",
        "items": "Item List",
        "sku": "SKU",
        "product_name": "Product Name",
        "quantity": "Quantity",
        "unit": "Unit",
        "submit": "Submit Inbound Request",
        "submitted": "Inbound request submitted",
        "recent_requests": "Recent Inbound Requests",
        "no_requests": "No inbound requests yet",
        "detail_title": "Inbound Request Details",
        "request_id": "Request ID",
        "last_updated": "Last Updated",
        "history": "Timeline",
        "reason": "Reason",
        "change_status": "Change Status",
        "delete_request": "Delete Request",
        "deleted": "Inbound request deleted",
        "not_found": "Inbound request not found",
        "select_request": "Select a request to view",
        "language": "Language",
    },
    "vi": {
        "app_title": "Hệ thống tích hợp OMS-WMS",
        "app_subtitle": "Hệ thống quản lý đơn hàng - Tích hợp hệ thống quản lý kho",
        "nav_dashboard": "Bảng điều khiển",
        "nav_inbound_detail": "Chi tiết nhập hàng",
        "form_title": "Yêu cầu nhập hàng",
        "basic_info": "Thông tin cơ bản",
        "po_number": "Số PO",
        "supplier": "Nhà cung cấp",
        "request_date": "Ngày yêu cầu",
        "expected_date": "Ngày dự kiến",
        "approval_status": "Trạng thái phê duyệt",
        "memo": "Ghi chú",
        "items": "Danh sách mặt hàng",
        "sku": "SKU",
        "product_name": "Tên sản phẩm",
        "quantity": "Số lượng",
        "unit": "Đơn vị",
        "submit": "Gửi yêu cầu nhập hàng",
        "submitted": "Đã gửi yêu cầu nhập hàng",
        "recent_requests": "Yêu cầu nhập hàng gần đây",
        "no_requests": "Chưa có yêu cầu nhập hàng",
        "detail_title": "Chi tiết yêu cầu nhập hàng",
        "request_id": "ID yêu cầu",
        "last_updated": "Cập nhật lần cuối",
        "history": "Dòng thời gian",
        "reason": "Lý do",
        "change_status": "Đổi trạng thái",
        "delete_request": "Xóa yêu cầu",
        "deleted": "Đã xóa yêu cầu nhập hàng",
        "not_found": "Không tìm thấy yêu cầu nhập hàng",
        "select_request": "Chọn một yêu cầu để xem",
        "language": "Ngôn ngữ",
    },
}

STATUS_LABELS: dict[str, dict[ApprovalStatus, str]] = {
    "ko": {
        ApprovalStatus.PENDING_APPROVAL: "승인대기",
        ApprovalStatus.APPROVED: "승인완료",
        ApprovalStatus.REJECTED: "반려됨",
        ApprovalStatus.RECEIVED: "입고완료",
    },
    "en": {
        ApprovalStatus.PENDING_APPROVAL: "Pending Approval",
        ApprovalStatus.APPROVED: "Approved",
        ApprovalStatus.REJECTED: "Rejected",
        ApprovalStatus.RECEIVED: "Received",
    },
    "vi": {
        ApprovalStatus.PENDING_APPROVAL: "Chờ phê duyệt",
        ApprovalStatus.APPROVED: "Đã phê duyệt",
        ApprovalStatus.REJECTED: "Bị từ chối",
        ApprovalStatus.RECEIVED: "Đã nhập kho",
    },
}

LOCALE_NAMES = {"ko": "한국어", "en": "English", "vi": "Tiếng Việt"}

FALLBACK_LOCALE = "ko"


def get_translations(locale: str) -> dict[str, str]:
    return TRANSLATIONS.get(locale, TRANSLATIONS[FALLBACK_LOCALE])


def status_label(status: ApprovalStatus, locale: str) -> str:
    return STATUS_LABELS.get(locale, STATUS_LABELS[FALLBACK_LOCALE])[status]
