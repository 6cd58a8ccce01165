import pytest

from earnings_models import ReportMeta


PERIODIC_HTML = """
<html><body>
<p class="section-2">2-2. 연결 포괄손익계산서</p>
<table>
  <tr><td>
    <p>연결 포괄손익계산서</p>
    <p>제 57 기 반기 2025.01.01 부터 2025.06.30 까지</p>
    <p>(단위 : 백만원)</p>
  </td></tr>
</table>
<table>
  <tr><th>과목</th><th>제 57 기 반기</th><th>제 56 기 반기</th></tr>
  <tr><td>수익(매출액) (주4)</td><td>74,068,302</td><td>71,915,601</td></tr>
  <tr><td>매출원가</td><td>44,193,291</td><td>42,339,521</td></tr>
  <tr><td>영업이익(손실)</td><td>4,676,271</td><td>10,443,856</td></tr>
  <tr><td>영업수익 (주26)</td><td>999</td><td>999</td></tr>
  <tr><td>반기순이익(손실)</td><td>5,164,097</td><td>9,841,361</td></tr>
  <tr><td>당기순이익</td><td>1</td><td>1</td></tr>
  <tr><td>지배기업의 소유주에게 귀속되는 반기순이익(손실)</td><td>4,983,419</td><td>9,641,322</td></tr>
  <tr><td>비지배지분에 귀속되는 반기순이익(손실)</td><td>180,678</td><td>200,039</td></tr>
</table>
</body></html>
"""

PERIODIC_ANNUAL_HTML = """
<html><body>
<p class="table-group-xbrl">포괄손익계산서</p>
<table>
  <tr><td><p>포괄손익계산서</p><p>제 10 기 2024.01.01 부터 2024.12.31 까지</p><p>(단위 : 천원)</p></td></tr>
</table>
<table>
  <tr><td>매출액</td><td>1,000,000</td></tr>
  <tr><td>영업손실</td><td>(20,000)</td></tr>
  <tr><td>당기순손실</td><td>(35,000)</td></tr>
</table>
</body></html>
"""

PERIODIC_NO_SALES_HTML = """
<html><body>
<p class="section-2">손익계산서</p>
<p>2025.03.31 까지 (단위 : 원)</p>
<table>
  <tr><td>영업이익</td><td>1,000</td></tr>
</table>
</body></html>
"""

PRELIMINARY_HTML = """
<html><body>
<p>연결재무제표 기준 영업(잠정)실적(공정공시)</p>
<p>(단위 : 백만원, %)</p>
<table>
  <tr><td rowspan="2">구분</td><td>당기실적</td><td>전기실적</td><td>전년동기실적</td></tr>
  <tr><td>('25.2Q)</td><td>('25.1Q)</td><td>('24.2Q)</td></tr>
  <tr><td rowspan="2">매출액</td><td>당해실적</td><td>1,234,567</td><td>1,100,000</td><td>1,000,000</td></tr>
  <tr><td>누계실적</td><td>2,334,567</td><td>1,100,000</td><td>1,900,000</td></tr>
  <tr><td rowspan="2">영업이익</td><td>당해실적</td><td>(12,345)</td><td>10,000</td><td>8,000</td></tr>
  <tr><td>누계실적</td><td>(2,345)</td><td>10,000</td><td>15,000</td></tr>
  <tr><td rowspan="2">당기순이익</td><td>당해실적</td><td>5,000</td><td>4,000</td><td>3,000</td></tr>
  <tr><td>누계실적</td><td>9,000</td><td>4,000</td><td>6,000</td></tr>
</table>
</body></html>
"""

PRELIMINARY_MONTHLY_HTML = """
<html><body>
<p>(단위 : 억원)</p>
<table>
  <tr><td>구분</td><td>당월실적</td></tr>
  <tr><td>2025년 7월</td><td>2024년 7월</td></tr>
  <tr><td>매출액</td><td>당해실적</td><td>120</td></tr>
</table>
</body></html>
"""

PRELIMINARY_NO_PERIOD_HTML = """
<html><body>
<p>(단위 : 억원)</p>
<table>
  <tr><td>매출액</td><td>당해실적</td><td>120</td></tr>
  <tr><td>영업이익</td><td>당해실적</td><td>15</td></tr>
</table>
</body></html>
"""

THRESHOLD_HTML = """
<html><body>
<table>
  <tr><td>1. 재무제표의 종류</td><td>연결</td></tr>
  <tr><td>2. 매출액 또는 손익구조 변동내용(단위: 원)</td><td>당해사업연도</td><td>직전사업연도</td><td>증감금액</td></tr>
  <tr><td>- 매출액(재화의 판매 및 용역의 제공에 따른 수익액에 한함)</td><td>50,000,000,000</td><td>40,000,000,000</td><td>10,000,000,000</td></tr>
  <tr><td>- 영업이익</td><td>(1,000,000,000)</td><td>500,000,000</td><td>-1,500,000,000</td></tr>
  <tr><td>- 법인세비용차감전계속사업이익</td><td>2,500,000,000</td><td>800,000,000</td><td>1,700,000,000</td></tr>
  <tr><td>- 당기순이익</td><td>2,000,000,000</td><td>600,000,000</td><td>1,400,000,000</td></tr>
</table>
</body></html>
"""

HISTORY_HTML = """
<html><body><map name="chart">
<area shape="rect" title="[매출액]&#10;날짜: 2025/03&#10;값: 1,100">
<area shape="rect" title="[매출액]&#10;날짜: 2024/12&#10;값: 1,050">
<area shape="rect" title="[매출액]&#10;날짜: 2024/09&#10;값: 980">
<area shape="rect" title="[영업이익]&#10;날짜: 2025/03&#10;값: 100">
<area shape="rect" title="[영업이익]&#10;날짜: 2024/12&#10;값: -12.5">
<area shape="rect" title="[순이익]&#10;날짜: 2025/03&#10;값: 40">
<area shape="rect" title="[부채비율]&#10;날짜: 2025/03&#10;값: 80">
<area shape="rect" title="no data">
</map></body></html>
"""


@pytest.fixture
def periodic_html():
    return PERIODIC_HTML


@pytest.fixture
def periodic_annual_html():
    return PERIODIC_ANNUAL_HTML


@pytest.fixture
def periodic_no_sales_html():
    return PERIODIC_NO_SALES_HTML


@pytest.fixture
def preliminary_html():
    return PRELIMINARY_HTML


@pytest.fixture
def preliminary_monthly_html():
    return PRELIMINARY_MONTHLY_HTML


@pytest.fixture
def preliminary_no_period_html():
    return PRELIMINARY_NO_PERIOD_HTML


@pytest.fixture
def threshold_html():
    return THRESHOLD_HTML


@pytest.fixture
def history_html():
    return HISTORY_HTML


@pytest.fixture
def periodic_report():
    return ReportMeta(report_name="반기보고서 (2025.06)", receipt_no="20250814000123", receipt_date="20250814", corp_name="삼성전자", stock_code="005930")


@pytest.fixture
def preliminary_report():
    return ReportMeta(report_name="연결재무제표기준영업(잠정)실적(공정공시)", receipt_no="20250708000456", receipt_date="20250708", corp_name="삼성전자", stock_code="005930")


@pytest.fixture
def threshold_report():
    return ReportMeta(report_name="매출액또는손익구조30%(대규모법인은15%)이상변경", receipt_no="20250214000789", receipt_date="20250214", corp_name="에이비씨", stock_code="123456")
