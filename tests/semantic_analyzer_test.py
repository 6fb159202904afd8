import sys
import os
import copy
import pytest
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))
from semantic.comparison_result import Severity, TypographyStatus
from semantic.config import AuditConfig
from semantic.errors import SnapshotError
from semantic.semantic_analyzer import SemanticAnalyzer, normalize_font_family
from semantic.snapshots import TextNode

SECTIONS = {
    'header': {'x': 0, 'y': 0, 'width': 1440, 'height': 80},
    'hero': {'x': 0, 'y': 80, 'width': 1440, 'height': 520},
    'features': {'x': 0, 'y': 640, 'width': 1440, 'height': 600},
    'ctas': {'x': 0, 'y': 1280, 'width': 1440, 'height': 300},
    'footer': {'x': 0, 'y': 1600, 'width': 1440, 'height': 200},
}

DESIGN = {
    'frame_width': 1440,
    'frame_height': 1800,
    'sections': SECTIONS,
    'text_nodes': [
        {'id': '1:1', 'name': 'Hero Title', 'text': 'Build faster websites', 'x': 120, 'y': 200,
         'font_family': 'Inter', 'font_size': 48, 'font_weight': '700', 'line_height': 56,
         'letter_spacing': 0, 'color': '#111111'},
        {'id': '1:2', 'name': 'Body text', 'text': 'Ship pages your designers will love.', 'x': 120, 'y': 280,
         'font_family': 'Inter', 'font_size': 18, 'font_weight': '400', 'line_height': 28,
         'letter_spacing': 0, 'color': '#444444'},
    ],
    'interactive_nodes': [
        {'id': '2:1', 'name': 'CTA Button', 'text': 'Get started',
         'rect': {'x': 120, 'y': 360, 'width': 160, 'height': 48},
         'background_color': '#2563EB', 'corner_radius': 8, 'type': 'INSTANCE'},
    ],
}

RENDERED = {
    'viewport_width': 1440,
    'viewport_height': 900,
    'document_width': 1440,
    'document_height': 1800,
    'sections': SECTIONS,
    'text_nodes': [
        {'id': 'h1-0', 'tag': 'h1', 'text': 'Build faster websites', 'x': 120, 'y': 200,
         'font_family': '"Inter", sans-serif', 'font_size': 48, 'font_weight': '700', 'line_height': 56,
         'letter_spacing': 0, 'color': 'rgb(17, 17, 17)'},
        {'id': 'p-0', 'tag': 'p', 'text': 'Ship pages your designers will love.', 'x': 120, 'y': 280,
         'font_family': 'Inter, sans-serif', 'font_size': 18, 'font_weight': '400', 'line_height': 28,
         'letter_spacing': 0, 'color': 'rgb(68, 68, 68)'},
    ],
    'interactive_elements': [
        {'tag': 'a', 'text': 'Get started', 'rect': {'x': 120, 'y': 360, 'width': 160, 'height': 48},
         'background_color': 'rgb(37, 99, 235)', 'border_radius': 8},
    ],
}


def snapshots():
    return copy.deepcopy(DESIGN), copy.deepcopy(RENDERED)


def text_pair(design_size=16, rendered_size=16, design_text='Welcome', rendered_text='Welcome',
              design_color='#333333', rendered_color='#333333', rendered_family='Roboto'):
    d = TextNode(id='d', name='Body text', text=design_text, font_family='Roboto', font_size=design_size,
                 line_height=24, letter_spacing=0, color=design_color)
    r = TextNode(id='r', tag='p', text=rendered_text, font_family=rendered_family, font_size=rendered_size,
                 line_height=24, letter_spacing=0, color=rendered_color)
    return d, r


def test_identical_snapshots_pass():
    design, rendered = snapshots()
    result = SemanticAnalyzer().analyze(design, rendered)
    assert result.summary.severity == Severity.PASS
    assert all(i.status == TypographyStatus.MATCH for i in result.text_typography)
    # MATCH entries are retained and counted
    assert len(result.text_typography) == 2
    assert result.summary.total_issues == 2
    assert result.missing_elements == []
    assert result.extra_elements == []


def test_font_size_within_tolerance_matches():
    d, r = text_pair(16, 16.5)
    issue, color_issue = SemanticAnalyzer().compare_typography('body', d, r)
    assert issue.status == TypographyStatus.MATCH
    assert issue.severity == Severity.PASS
    assert color_issue is None


def test_font_size_beyond_tolerance_drifts():
    d, r = text_pair(16, 20)
    issue, _ = SemanticAnalyzer().compare_typography('body', d, r)
    assert issue.status == TypographyStatus.DRIFT
    assert issue.severity == Severity.WARN
    assert 'Font size +4px' in issue.notes


def test_text_difference_is_mismatch_regardless_of_deltas():
    d, r = text_pair(16, 16, 'Get started today', 'Get started now')
    issue, _ = SemanticAnalyzer().compare_typography('body', d, r)
    assert issue.status == TypographyStatus.MISMATCH
    assert issue.severity == Severity.FAIL

    d, r = text_pair(16, 30, 'Get started today', 'Get started now')
    issue, _ = SemanticAnalyzer().compare_typography('body', d, r)
    assert issue.status == TypographyStatus.MISMATCH


def test_font_family_fallbacks_and_quotes_ignored():
    assert normalize_font_family('"Inter", Helvetica, sans-serif') == 'inter'
    assert normalize_font_family("'Open Sans'") == 'open sans'
    d, r = text_pair(rendered_family='"Roboto", Arial, sans-serif')
    issue, _ = SemanticAnalyzer().compare_typography('body', d, r)
    assert issue.status == TypographyStatus.MATCH


def test_different_font_family_is_mismatch():
    d, r = text_pair(rendered_family='Arial')
    issue, _ = SemanticAnalyzer().compare_typography('body', d, r)
    assert issue.status == TypographyStatus.MISMATCH


def test_text_color_drift_and_failure():
    # distance between #333333 and #373737 is ~1.6, below the warn threshold
    d, r = text_pair(rendered_color='#373737')
    issue, color_issue = SemanticAnalyzer().compare_typography('body', d, r)
    assert issue.status == TypographyStatus.MATCH
    assert color_issue is None

    # ~3.6: drift
    d, r = text_pair(rendered_color='#3C3C3C')
    issue, color_issue = SemanticAnalyzer().compare_typography('body', d, r)
    assert issue.status == TypographyStatus.DRIFT
    assert color_issue.severity == Severity.WARN

    d, r = text_pair(rendered_color='#FF0000')
    issue, color_issue = SemanticAnalyzer().compare_typography('body', d, r)
    assert issue.status == TypographyStatus.MISMATCH
    assert color_issue.severity == Severity.FAIL
    assert color_issue.role == 'text'


def test_unresolvable_color_is_skipped():
    d, r = text_pair(rendered_color='var(--brand)')
    issue, color_issue = SemanticAnalyzer().compare_typography('body', d, r)
    assert issue.status == TypographyStatus.MATCH
    assert issue.color_distance is None
    assert color_issue is None


def test_screen_dimensions():
    design, rendered = snapshots()
    design['frame_width'], design['frame_height'] = 1440, 900
    rendered['document_width'], rendered['document_height'] = 1440, 900
    result = SemanticAnalyzer().analyze(design, rendered)
    assert result.screen_dimensions.severity == Severity.PASS

    rendered['document_width'] = 1200
    result = SemanticAnalyzer().analyze(design, rendered)
    assert result.screen_dimensions.severity == Severity.FAIL
    assert result.screen_dimensions.width_diff_px == 240
    assert result.summary.severity == Severity.FAIL


def test_breakpoint_ratio_is_configurable():
    design, rendered = snapshots()
    rendered['document_width'] = 1200
    result = SemanticAnalyzer(AuditConfig(breakpoint_tolerance_ratio=0.2)).analyze(design, rendered)
    assert result.screen_dimensions.severity == Severity.PASS


def test_section_spacing_difference():
    design, rendered = snapshots()
    design['sections'] = {
        'hero': {'x': 0, 'y': 100, 'width': 1440, 'height': 400},
        'features': {'x': 0, 'y': 540, 'width': 1440, 'height': 600},
    }
    rendered['sections'] = {
        'hero': {'x': 0, 'y': 100, 'width': 1440, 'height': 400},
        'features': {'x': 0, 'y': 560, 'width': 1440, 'height': 600},
    }
    result = SemanticAnalyzer().analyze(design, rendered)
    assert len(result.spacing) == 1
    issue = result.spacing[0]
    assert issue.element_id == 'hero-features'
    assert issue.design_spacing == 40
    assert issue.rendered_spacing == 60
    assert issue.diff_px == pytest.approx(20)
    assert issue.severity == Severity.WARN


def test_section_spacing_within_noise_ignored():
    design, rendered = snapshots()
    rendered['sections'] = copy.deepcopy(SECTIONS)
    rendered['sections']['features']['y'] += 2
    result = SemanticAnalyzer().analyze(design, rendered)
    assert result.spacing == []
    assert result.alignment == []


def test_section_order_mismatch():
    design, rendered = snapshots()
    rendered['sections'] = copy.deepcopy(SECTIONS)
    rendered['sections']['ctas']['y'] = 500
    result = SemanticAnalyzer().analyze(design, rendered)
    assert len(result.order) == 1
    assert result.order[0].expected_order == ['header', 'hero', 'features', 'ctas', 'footer']
    assert result.order[0].actual_order == ['header', 'hero', 'ctas', 'features', 'footer']
    assert result.order[0].severity == Severity.FAIL


def test_no_landmarks_skips_order_and_spacing():
    design, rendered = snapshots()
    rendered['sections'] = {}
    result = SemanticAnalyzer().analyze(design, rendered)
    assert result.order == []
    assert result.spacing == []
    # each design-only landmark is still a structural failure
    assert len(result.element_sizes) == 5
    assert all(i.severity == Severity.FAIL for i in result.element_sizes)


def test_section_size_and_alignment():
    design, rendered = snapshots()
    rendered['sections'] = copy.deepcopy(SECTIONS)
    rendered['sections']['header']['width'] = 1400
    rendered['sections']['footer']['x'] = 5
    rendered['sections']['hero']['x'] = 20
    result = SemanticAnalyzer().analyze(design, rendered)

    sizes = {i.element_id: i for i in result.element_sizes}
    assert sizes['header'].severity == Severity.WARN
    assert sizes['header'].width_diff_px == 40

    alignment = {i.element_id: i for i in result.alignment}
    assert alignment['footer'].axis == 'horizontal'
    assert alignment['footer'].severity == Severity.WARN
    assert alignment['hero'].severity == Severity.FAIL


def test_interactive_elements():
    design, rendered = snapshots()
    rendered['interactive_elements'] = [
        {'tag': 'a', 'text': ' Get  started', 'rect': {'x': 120, 'y': 360, 'width': 200, 'height': 48},
         'background_color': '#ff0000'},
        {'tag': 'button', 'text': 'Subscribe', 'rect': {'x': 0, 'y': 0, 'width': 10, 'height': 10}},
    ]
    design['interactive_nodes'].append({'id': '2:2', 'name': 'Secondary', 'text': 'Learn more'})
    result = SemanticAnalyzer().analyze(design, rendered)

    sizes = [i for i in result.element_sizes if i.element_id == 'CTA Button']
    assert len(sizes) == 1 and sizes[0].severity == Severity.WARN

    backgrounds = [c for c in result.colors if c.role == 'background']
    assert len(backgrounds) == 1
    assert backgrounds[0].severity == Severity.FAIL
    assert backgrounds[0].rendered_color == '#FF0000'

    missing = [m for m in result.missing_elements if m.type == 'interactive']
    extra = [e for e in result.extra_elements if e.type == 'interactive']
    assert [m.text for m in missing] == ['Learn more']
    assert [e.text for e in extra] == ['Subscribe']


def test_unmatched_text_becomes_missing_and_extra():
    design, rendered = snapshots()
    design['text_nodes'].append({'id': '1:9', 'name': 'Legal', 'text': 'All rights reserved',
                                 'x': 100, 'y': 1700})
    rendered['text_nodes'].append({'id': 'span-9', 'tag': 'span', 'text': 'Accept cookies',
                                   'x': 1300, 'y': 3000})
    result = SemanticAnalyzer().analyze(design, rendered)
    assert [m.element_id for m in result.missing_elements] == ['Legal']
    assert [e.element_id for e in result.extra_elements] == ['span-9']
    assert result.missing_elements[0].type == 'text'
    assert result.summary.severity == Severity.FAIL


def test_analysis_is_idempotent():
    design, rendered = snapshots()
    rendered['text_nodes'][0]['font_size'] = 40
    analyzer = SemanticAnalyzer()
    first = analyzer.analyze(design, rendered)
    second = analyzer.analyze(design, rendered)
    assert first == second
    assert first.to_dict() == second.to_dict()


def test_missing_snapshot_is_fatal_and_named():
    design, rendered = snapshots()
    with pytest.raises(SnapshotError) as exc:
        SemanticAnalyzer().analyze(None, rendered)
    assert exc.value.source == 'design'
    with pytest.raises(SnapshotError) as exc:
        SemanticAnalyzer().analyze(design, ['not', 'a', 'tree'])
    assert exc.value.source == 'rendered'


def test_malformed_fields_fall_back_to_defaults():
    design = {'frame_width': 'wide', 'sections': {'hero': 'oops'}, 'text_nodes': [None, {'text': 'Hi'}]}
    rendered = {'document_width': float('nan'), 'sections': None, 'text_nodes': 'nope'}
    result = SemanticAnalyzer().analyze(design, rendered)
    assert result.screen_dimensions.severity == Severity.PASS
    assert [m.text for m in result.missing_elements] == ['Hi']
    assert result.summary.severity == Severity.FAIL


def test_to_dict_shape():
    design, rendered = snapshots()
    data = SemanticAnalyzer().analyze(design, rendered).to_dict()
    assert data['summary'] == {'total_issues': 2, 'severity': 'PASS'}
    assert data['screen_dimensions']['severity'] == 'PASS'
    assert data['text_typography'][0]['status'] == 'MATCH'
    for key in ('element_sizes', 'alignment', 'order', 'colors', 'spacing', 'missing_elements', 'extra_elements'):
        assert data[key] == []


def test_interactive_labels_are_case_sensitive():
    design, rendered = snapshots()
    rendered['interactive_elements'][0]['text'] = 'GET STARTED'
    result = SemanticAnalyzer().analyze(design, rendered)
    assert [m.text for m in result.missing_elements if m.type == 'interactive'] == ['Get started']
    assert [e.text for e in result.extra_elements if e.type == 'interactive'] == ['GET STARTED']
