"""
JavaScript snippets evaluated inside Storybook pages.

Kept as plain strings so they can be passed to ``page.evaluate`` /
``frame.evaluate`` and inspected in tests.
"""

# True when any known story store global is present. Argument: list of global names.
HAS_STORY_STORE_SCRIPT = """
(names) => names.some((name) => Boolean(window[name]))
"""

# Names of the story store globals present on the page. Argument: list of global names.
LIST_STORY_GLOBALS_SCRIPT = """
(names) => names.filter((name) => Boolean(window[name]))
"""

# Reads stories from whichever store API this Storybook version exposes.
# Returns null when no API is found, otherwise {source, stories} where stories
# is an array of plain records (or whatever non-array the API returned).
EXTRACT_STORIES_SCRIPT = """
() => {
  const win = window;
  const plain = (story) => {
    if (!story || typeof story !== 'object') return story;
    return {
      id: story.id,
      type: story.type,
      title: story.title,
      kind: story.kind,
      name: story.name,
      componentId: story.componentId,
      args: story.args || (story.parameters && story.parameters.args) || {}
    };
  };
  const normalize = (source, stories) => ({
    source,
    stories: Array.isArray(stories) ? stories.map(plain) : typeof stories
  });

  const store = win.__STORYBOOK_STORY_STORE__;
  if (store && store.storyIndex && store.storyIndex.entries) {
    const entries = Object.entries(store.storyIndex.entries).map(
      ([id, entry]) => Object.assign({}, entry, { id: entry.id || id, kind: entry.title })
    );
    return normalize('storyIndex.entries', entries);
  }

  const candidates = [
    ['__STORYBOOK_STORY_STORE__', store],
    ['STORYBOOK_STORY_STORE', win.STORYBOOK_STORY_STORE],
    ['__STORYBOOK_PREVIEW__.storyStore', win.__STORYBOOK_PREVIEW__ && win.__STORYBOOK_PREVIEW__.storyStore]
  ];
  for (const [source, candidate] of candidates) {
    if (candidate && typeof candidate.getStoriesJsonData === 'function') {
      const data = candidate.getStoriesJsonData();
      const stories = data && data.stories ? Object.values(data.stories) : data;
      return normalize(source + '.getStoriesJsonData', stories);
    }
  }

  const clientApi = win.__STORYBOOK_CLIENT_API__;
  if (clientApi && typeof clientApi.raw === 'function') {
    return normalize('__STORYBOOK_CLIENT_API__.raw', clientApi.raw());
  }

  return null;
}
"""

# Major version hints from the DOM and store shape; 6 when nothing matches.
DETECT_VERSION_SCRIPT = """
() => {
  const win = window;
  if (document.querySelector('.sidebar-header--menu')) return 8;
  const store = win.__STORYBOOK_STORY_STORE__;
  if (store && store.storyIndex && store.storyIndex.entries) return 8;
  if (store && typeof store.getStoriesJsonData === 'function') return 7;
  return 6;
}
"""

# True when a story root exists and has rendered children. Argument: root selector.
ROOT_HAS_CHILDREN_SCRIPT = """
(selector) => {
  const root = document.querySelector(selector);
  return Boolean(root && root.children.length > 0);
}
"""

# True when a story root has any markup at all. Argument: root selector.
ROOT_HAS_CONTENT_SCRIPT = """
(selector) => {
  const root = document.querySelector(selector);
  return Boolean(root && root.innerHTML.trim().length > 0);
}
"""

# Looks for the variant name in attribute values or text under the story root.
# Argument: {selector, variant}. Returns 'evidence', 'rendered' or 'empty'.
VERIFY_VARIANT_SCRIPT = """
({ selector, variant }) => {
  const root = document.querySelector(selector);
  if (!root) return 'empty';
  const needle = variant.toLowerCase();
  for (const el of Array.from(root.querySelectorAll('*'))) {
    for (const attr of Array.from(el.attributes)) {
      if (attr.value.toLowerCase().includes(needle)) return 'evidence';
    }
  }
  if ((root.textContent || '').toLowerCase().includes(needle)) return 'evidence';
  return root.children.length > 0 ? 'rendered' : 'empty';
}
"""

# Adds pseudo-state marker classes to an element and dispatches synthetic events.
# Evaluated on the element handle; argument: {hover, focus, active}.
# Returns the classes added.
APPLY_STATE_SCRIPT = """
(el, { hover, focus, active }) => {
  const applied = [];
  const fire = (type, Ctor) => el.dispatchEvent(new Ctor(type, { bubbles: true }));
  const Pointer = window.PointerEvent || window.MouseEvent;
  if (hover) {
    el.classList.add('sb-pseudo-hover');
    applied.push('sb-pseudo-hover');
    fire('pointerenter', Pointer);
    fire('mouseover', MouseEvent);
    fire('mouseenter', MouseEvent);
  }
  if (focus) {
    el.classList.add('sb-pseudo-focus');
    applied.push('sb-pseudo-focus');
  }
  if (active) {
    el.classList.add('sb-pseudo-active');
    applied.push('sb-pseudo-active');
    fire('pointerdown', Pointer);
    fire('mousedown', MouseEvent);
  }
  return applied;
}
"""

# Story nodes rendered in the manager sidebar, with the label of their parent
# component node when it is rendered. Argument: selector for story nodes.
SIDEBAR_STORIES_SCRIPT = """
(selector) => Array.from(document.querySelectorAll(selector)).map((item) => {
  const parentId = item.getAttribute('data-parent-id') || '';
  const escaped = parentId ? CSS.escape(parentId) : '';
  const parent = parentId
    ? document.querySelector(`[data-item-id="${escaped}"], [data-nodeid="${escaped}"]`)
    : null;
  return {
    id: item.getAttribute('data-item-id') || item.getAttribute('data-nodeid') || '',
    parentId,
    parentName: parent ? (parent.textContent || '').trim() : '',
    text: (item.textContent || '').trim()
  };
})
"""
