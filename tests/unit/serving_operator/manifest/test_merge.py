"""
Tests for merging desired state into live state.
"""

from serving_operator.manifest import update_changed


class TestUpdateChanged:
    """Tests for update_changed."""

    def test_preserves_live_only_keys(self):
        live = {"metadata": {"name": "a", "resourceVersion": "7"}, "spec": {"clusterIP": "10.0.0.1"}}
        desired = {"metadata": {"name": "a"}, "spec": {"ports": [{"port": 80}]}}
        assert update_changed(desired, live)
        assert live["metadata"]["resourceVersion"] == "7"
        assert live["spec"]["clusterIP"] == "10.0.0.1"
        assert live["spec"]["ports"] == [{"port": 80}]

    def test_no_change_reports_false(self):
        live = {"metadata": {"name": "a", "uid": "u"}, "spec": {"replicas": 1}}
        desired = {"metadata": {"name": "a"}, "spec": {"replicas": 1}}
        assert not update_changed(desired, live)

    def test_scalar_change(self):
        live = {"spec": {"replicas": 1}}
        assert update_changed({"spec": {"replicas": 3}}, live)
        assert live["spec"]["replicas"] == 3

    def test_lists_replaced(self):
        live = {"spec": {"containers": [{"name": "a"}, {"name": "b"}]}}
        assert update_changed({"spec": {"containers": [{"name": "a"}]}}, live)
        assert live["spec"]["containers"] == [{"name": "a"}]

    def test_data_replaced_wholesale(self):
        live = {"data": {"a": "1", "b": "2"}}
        assert update_changed({"data": {"a": "1"}}, live)
        assert live["data"] == {"a": "1"}

    def test_nested_data_replaced_wholesale(self):
        live = {"spec": {"data": {"x": "1", "y": "2"}}}
        assert update_changed({"spec": {"data": {"x": "1"}}}, live)
        assert live["spec"]["data"] == {"x": "1"}

    def test_dict_replaces_non_dict(self):
        live = {"spec": None}
        assert update_changed({"spec": {"a": 1}}, live)
        assert live["spec"] == {"a": 1}
