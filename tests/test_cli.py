import json

import numpy as np

from octree_index.cli import main

from conftest import make_document


def _write_cloud(tmp_path, **overrides):
    cloud = tmp_path / 'cloud.js'
    cloud.write_text(json.dumps(make_document(**overrides)), encoding='utf-8')
    return cloud


def test_cli_prints_summary(tmp_path, capsys):
    cloud = _write_cloud(tmp_path)
    payload_dir = tmp_path / 'data' / 'r'
    payload_dir.mkdir(parents=True)
    records = np.zeros(3, dtype=[('POSITION_CARTESIAN', '<u4', (3,)), ('COLOR_PACKED', '<u1', (4,))])
    (payload_dir / 'r.bin').write_bytes(records.tobytes())

    assert main([str(cloud), '--nodes']) == 0

    summary = json.loads(capsys.readouterr().out)
    assert summary['version'] == '1.4'
    assert summary['decoder'] == 'binary'
    assert summary['offset'] == [100.0, 200.0, 10.0]
    assert summary['node_count'] == 3
    assert summary['nodes']['r01'] == {'level': 2, 'points': 3, 'spacing': 0.25}
    assert summary['point_attributes'] == ['POSITION_CARTESIAN', 'COLOR_PACKED']
    assert summary['root_loaded'] is True


def test_cli_missing_document(tmp_path):
    assert main([str(tmp_path / 'cloud.js')]) == 1


def test_cli_malformed_document(tmp_path):
    cloud = _write_cloud(tmp_path, version='not-a-version')

    assert main([str(cloud)]) == 2
