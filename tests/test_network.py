import pytest

from sysmetrics.network import (
    NetworkCountersInfo,
    map_proc_net_counters,
    map_proc_net_counters_with_filter,
)


@pytest.fixture
def example_data():
    return NetworkCountersInfo(
        ip={"DefaultTTL": 0x40, "ForwDatagrams": 0x3EF68, "Forwarding": 0x1, "FragCreates": 0x0,
            "FragFails": 0x0, "FragOKs": 0x0, "InAddrErrors": 0x2, "InDelivers": 0x132B5D,
            "InReceives": 0x1904F4, "InUnknownProtos": 0x0, "OutDiscards": 0x0,
            "OutNoRoutes": 0xE, "OutRequests": 0x143A7E},
        icmp={"InAddrMaskReps": 0x0},
        icmp_msg={"InType3": 0x2, "OutType3": 0x85},
        tcp={"ActiveOpens": 0x63D, "AttemptFails": 0x72, "CurrEstab": 0x9, "EstabResets": 0x54,
             "InCsumErrors": 0x0, "InErrs": 0x0, "InSegs": 0x13270B,
             "MaxConn": 0xFFFFFFFFFFFFFFFF, "OutRsts": 0x2F6, "OutSegs": 0x111424},
        udp={"NoPorts": 0x1, "OutDatagrams": 0x4D5},
        udp_lite={"SndbufErrors": 0x0},
        tcp_ext={"TCPAbortOnClose": 0x6, "TCPAbortOnData": 0x51, "TCPAbortOnLinger": 0x0,
                 "TCPAbortOnMemory": 0x0, "TCPAbortOnTimeout": 0x7F, "TCPAckCompressed": 0x3346,
                 "TCPAutoCorking": 0x1063, "TCPBacklogCoalesce": 0x38A, "TCPBacklogDrop": 0x0,
                 "TCPChallengeACK": 0x0, "TCPDSACKIgnoredDubious": 0x0, "TCPHPHits": 0x99FC8,
                 "TCPHystartDelayCwnd": 0x294, "TCPHystartDelayDetect": 0x3,
                 "TCPHystartTrainCwnd": 0xA1E},
        ip_ext={"InBcastOctets": 0x514D4C, "InBcastPkts": 0x1E999, "InCEPkts": 0x0,
                "InCsumErrors": 0x0, "InECT0Pkts": 0x0, "InECT1Pkts": 0x0,
                "InMcastOctets": 0x44A, "InMcastPkts": 0x12, "InNoECTPkts": 0x1EC6D9,
                "InNoRoutes": 0x0, "InOctets": 0x50701313, "OutMcastPkts": 0x71,
                "OutOctets": 0x47F14F8C, "ReasmOverlaps": 0x0},
    )


def test_filter_all(example_data):
    all_map = map_proc_net_counters_with_filter(example_data, ["all"])
    assert len(all_map["icmp"]) == len(example_data.icmp) + len(example_data.icmp_msg)
    assert len(all_map["tcp"]) == len(example_data.tcp) + len(example_data.tcp_ext)


def test_filter_keys(example_data):
    filtered = map_proc_net_counters_with_filter(
        example_data, ["TCPAbortOnClose", "InBcastOctets"]
    )
    assert len(filtered["tcp"]) == 1
    assert filtered["tcp"]["TCPAbortOnClose"] == 0x6
    assert filtered["ip"]["InBcastOctets"] == 0x514D4C
    assert filtered["icmp"] == {}


def test_max_conn_is_signed(example_data):
    result = map_proc_net_counters(example_data)
    assert result["tcp"]["MaxConn"] == -1
    assert result["tcp"]["ActiveOpens"] == 0x63D


def test_udp_passed_through_unfiltered(example_data):
    filtered = map_proc_net_counters_with_filter(example_data, ["NoPorts"])
    assert filtered["udp"] == {"NoPorts": 0x1, "OutDatagrams": 0x4D5}
    assert filtered["udp_lite"] == {"SndbufErrors": 0x0}


def test_empty_filter_keeps_everything(example_data):
    result = map_proc_net_counters_with_filter(example_data, [])
    assert set(result) == {"ip", "tcp", "udp", "udp_lite", "icmp"}
    assert len(result["ip"]) == len(example_data.ip) + len(example_data.ip_ext)