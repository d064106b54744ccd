"""
호스트 헤더 → 테넌트 도메인 라벨 변환 유틸리티

요청의 Host 헤더에서 포트를 제거하고, 테넌트 조회에 사용할
도메인 라벨(마지막 두 라벨)을 추출합니다.

변환 규칙:
    - "example.com:8080"      → "example.com"
    - "www.shop.example.com"  → "example.com"
    - "localhost:8000"        → "localhost"
    - "127.0.0.1:8000"        → "127.0.0.1"
    - "[::1]:8000"            → "::1"
"""

import ipaddress

LOCALHOST = "localhost"


def strip_port(host: str) -> str:
    """Host 헤더에서 포트 제거

    대괄호로 감싼 IPv6 주소("[::1]:8080")와
    대괄호 없는 IPv6 리터럴("::1")을 모두 처리합니다.

    Args:
        host: Host 헤더 값

    Returns:
        포트가 제거된 호스트
    """
    host = host.strip()

    if host.startswith("["):
        end = host.find("]")
        if end != -1:
            return host[1:end]
        return host[1:]

    # 콜론이 2개 이상이면 포트 없는 IPv6 리터럴
    if host.count(":") > 1:
        return host

    return host.split(":", 1)[0]


def is_ip_address(host: str) -> bool:
    """IPv4/IPv6 리터럴 여부"""
    try:
        ipaddress.ip_address(host)
    except ValueError:
        return False
    return True


def extract_domain(host: str | None) -> str:
    """Host 헤더에서 테넌트 도메인 라벨 추출

    Args:
        host: Host 헤더 값 (None 허용)

    Returns:
        도메인 라벨. localhost와 IP 주소는 그대로 반환합니다.
    """
    if not host:
        return ""

    host = strip_port(host)

    if host == LOCALHOST or is_ip_address(host):
        return host

    labels = host.split(".")
    if len(labels) >= 2:
        return ".".join(labels[-2:])
    return host
